# bafios

Pieces of a small hobby operating system, written in plain Python and
usable on their own:

- `bafios.db`: a line-based key/value database format (`CustomFormat`,
  `DataEntry`, `load`, `serialize_value`, `deserialize_value`) with typed
  values: strings, numbers, booleans, arrays and objects.
- `bafios.blockdev`: `BlockDevice`, an in-memory disk addressed in
  512-byte sectors. Writes are zero-padded to the end of the last sector.
- `bafios.fat_structs`: the on-disk `BootSector` and `DirEntry` records,
  `FatError`, and the name helpers `split_path`, `to_fat_name` and
  `path_to_fat_name`.
- `bafios.fat16`: `Fat16`, which reads a FAT16 volume on a `BlockDevice`:
  looking up paths (`find_entry`, `find_dir`), reading files
  (`read_file`), listing directories (`count_entries_in_dir`,
  `get_entries_by_id`) and reading or setting FAT entries.
- `bafios.fat16_write`: `create_file`, `create_dir`, `overwrite_file`,
  `append_to_file` (which adds a NUL byte after the data), `make_file` and
  `update_directory_entry`. Only the first FAT copy is updated.
- `bafios.paths`: `format_path_8_3` rewrites the last path component as
  an 11-character 8.3 short name.
- `bafios.heap`: a first-fit free-list `Allocator` handing out addresses
  in a simulated memory region.
- `bafios.color`, `bafios.framebuffer`, `bafios.composer`, `bafios.mouse`:
  `Color` with its 16, 24 and 32-bit encodings, a double-buffered
  `DisplayServer` held in byte arrays, a `Composer` that stacks up to 16
  windows, and a `Mouse` that turns PS/2 packets into pointer movement,
  focus changes, window dragging and resizing.
- `bafios.keyboard`: `Keyboard`, translating scancodes of an Italian
  layout into characters.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

A database round trip:

```python
from bafios.db import CustomFormat, DataEntry

db = CustomFormat()
db.add_metadata("version", "1.9")
db.add_entry(DataEntry(id="001", values={"name": "Example", "age": 25.0}))

again = CustomFormat.from_bytes(db.to_bytes())
assert again.get("name") == "Example"
```

A small FAT16 volume built in memory, with the partition at sector 0:

```python
import struct

from bafios.blockdev import BlockDevice
from bafios.fat16 import Fat16
from bafios.fat16_write import create_file, overwrite_file
from bafios.fat_structs import BootSector
from bafios.paths import format_path_8_3

device = BlockDevice(sectors=64)
device.write(0, BootSector(
    bytes_per_sector=512, sectors_per_cluster=1, reserved_sectors=1,
    fat_count=1, dir_entries_count=16, sectors_per_fat=1,
).pack())
device.write(1, struct.pack("<2H", 0xFFF8, 0xFFFF))  # reserved FAT entries

fs = Fat16(device, offset_lba=0)
path = format_path_8_3("/HELLO.TXT")      # "/HELLO   TXT"
create_file(fs, path)
overwrite_file(fs, path, b"hi")
assert fs.read_file(path) == b"hi"
```

Keyboard translation:

```python
from bafios.keyboard import Keyboard

kb = Keyboard()
kb.translate(0x2A)         # shift pressed
assert kb.translate(0x10) == "Q"
```

## What it does not do

- It does not touch real disks. `Fat16` works on a `BlockDevice` held in
  memory; load an image with `BlockDevice(image_bytes)` and save it with
  `to_bytes()`.
- It does not show anything on a screen. `DisplayServer` only fills byte
  arrays, and the `Mouse` queues window handler calls in its `tasks` list
  rather than running them.
- It has no command-line program and does not start or run other
  programs.

The package has no dependencies outside the standard library.