"""Runtime support for bytecoding generated code."""

from .coder import Coder as Coder
from .primitives import BOOL as BOOL
from .primitives import I8 as I8
from .primitives import I16 as I16
from .primitives import I32 as I32
from .primitives import I64 as I64
from .primitives import I128 as I128
from .primitives import INTEGER_CODECS as INTEGER_CODECS
from .primitives import ISIZE as ISIZE
from .primitives import PACKED_BOOLS as PACKED_BOOLS
from .primitives import STRING as STRING
from .primitives import U8 as U8
from .primitives import U16 as U16
from .primitives import U32 as U32
from .primitives import U64 as U64
from .primitives import U128 as U128
from .primitives import USIZE as USIZE
from .primitives import ArrayCodec as ArrayCodec
from .primitives import Codec as Codec
from .primitives import IntegerCodec as IntegerCodec
from .primitives import ListCodec as ListCodec
from .primitives import MapCodec as MapCodec
from .primitives import OptionalCodec as OptionalCodec
from .primitives import TypeCodec as TypeCodec
from .primitives import pack_fields as pack_fields
from .primitives import unpack_fields as unpack_fields
from .serialization import Codable as Codable
from .serialization import DecodeError as DecodeError
from .serialization import EncodeError as EncodeError
from .serialization import Record as Record
from .serialization import SerializationError as SerializationError
from .serialization import Union as Union
from .serialization import apply_post_decode as apply_post_decode
from .serialization import apply_pre_decode as apply_pre_decode
