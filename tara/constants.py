import struct


# Header field layouts (big-endian, unpadded)
#  - entry_count u32
#  - per entry: name_length u16 || name[name_length] || data_length u32
COUNT_STRUCT = struct.Struct(">I")
NAME_LEN_STRUCT = struct.Struct(">H")
DATA_LEN_STRUCT = struct.Struct(">I")

MAX_ENTRY_COUNT = 0xFFFFFFFF
MAX_NAME_BYTES = 0xFFFF
MAX_DATA_LEN = 0xFFFFFFFF

NAME_ENCODING = "utf-8"
