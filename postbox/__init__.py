__version__ = "0.1.0"

from .boundaries import Boundary, open_boundary, random_boundary
from .datastructures import Headers
from .encoders import encode
from .enums import Encoding, MultipartSubtype
from .envelope import Envelope, EnvelopeWriter, File, Part, build_part, render, write_envelope
from .exceptions import BoundaryStateError, PostboxError, RandomSourceError, UnsupportedEncoding

__all__ = [
    "Boundary",
    "BoundaryStateError",
    "Encoding",
    "Envelope",
    "EnvelopeWriter",
    "File",
    "Headers",
    "MultipartSubtype",
    "Part",
    "PostboxError",
    "RandomSourceError",
    "UnsupportedEncoding",
    "build_part",
    "encode",
    "open_boundary",
    "random_boundary",
    "render",
    "write_envelope",
]
