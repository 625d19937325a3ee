import struct

from cluster_exerciser.errors import PayloadDecodeError

from .identifier_generator import MAX_IDENTIFIER


PAYLOAD_FORMAT = struct.Struct("<Q")
PAYLOAD_SIZE = PAYLOAD_FORMAT.size


def encode_identifier(identifier: int) -> bytes:
    if identifier < 0 or identifier > MAX_IDENTIFIER:
        raise ValueError(
            f"Err. - identifier {identifier} does not fit in an unsigned 64-bit integer"
        )

    return PAYLOAD_FORMAT.pack(identifier)


def decode_identifier(payload: bytes) -> int:
    if len(payload) != PAYLOAD_SIZE:
        raise PayloadDecodeError(
            f"Err. - expected a {PAYLOAD_SIZE} byte payload but received {len(payload)} bytes"
        )

    (identifier,) = PAYLOAD_FORMAT.unpack(payload)
    return identifier
