"""JSON and MessagePack encoding backed by msgspec."""

from typing import Any, Literal, overload

import msgspec

from sqlstash.exceptions import SerializationError

__all__ = ("decode_json", "decode_msgpack", "encode_json", "encode_msgpack")

_encoder = msgspec.json.Encoder()
_decoder = msgspec.json.Decoder()
_msgpack_encoder = msgspec.msgpack.Encoder()
_msgpack_decoder = msgspec.msgpack.Decoder()


@overload
def encode_json(data: Any, *, as_bytes: Literal[False] = ...) -> str: ...


@overload
def encode_json(data: Any, *, as_bytes: Literal[True]) -> bytes: ...


def encode_json(data: Any, *, as_bytes: bool = False) -> "str | bytes":
    """Encode a Python object to JSON.

    Args:
        data: Object to encode.
        as_bytes: Return ``bytes`` instead of ``str``.

    Raises:
        SerializationError: If the object cannot be encoded.

    Returns:
        The JSON representation.
    """
    try:
        encoded = _encoder.encode(data)
    except (TypeError, msgspec.EncodeError) as e:
        msg = f"Unable to encode value of type {type(data).__name__} to JSON"
        raise SerializationError(msg) from e
    return encoded if as_bytes else encoded.decode("utf-8")


def decode_json(data: "str | bytes", *, decode_bytes: bool = True) -> Any:
    """Decode JSON into a Python object.

    Args:
        data: JSON text or bytes.
        decode_bytes: When False, ``bytes`` input is returned untouched.

    Raises:
        SerializationError: If the payload is not valid JSON.

    Returns:
        The decoded object.
    """
    if isinstance(data, bytes) and not decode_bytes:
        return data
    try:
        return _decoder.decode(data)
    except msgspec.DecodeError as e:
        msg = "Unable to decode JSON payload"
        raise SerializationError(msg) from e


def encode_msgpack(data: Any) -> bytes:
    """Encode a Python object to MessagePack.

    Unlike JSON, ``bytes`` values stay binary and timezone-aware ``datetime``
    values use the MessagePack timestamp type, so both decode to the type they
    were encoded from.

    Raises:
        SerializationError: If the object cannot be encoded.
    """
    try:
        return _msgpack_encoder.encode(data)
    except (TypeError, msgspec.EncodeError) as e:
        msg = f"Unable to encode value of type {type(data).__name__} to MessagePack"
        raise SerializationError(msg) from e


def decode_msgpack(data: bytes) -> Any:
    """Decode MessagePack produced by :func:`encode_msgpack`.

    Raises:
        SerializationError: If the payload is not valid MessagePack.
    """
    try:
        return _msgpack_decoder.decode(data)
    except msgspec.DecodeError as e:
        msg = "Unable to decode MessagePack payload"
        raise SerializationError(msg) from e
