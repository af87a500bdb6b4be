"""Hobby operating system components: FAT16 on an in-memory disk, window composer, heap and a small database format."""

__version__ = "0.1.0"