"""
Response body conversion.

convert() is a pure function from a successful RawResponse to a typed value,
selected by a ConvertType tag. Any failure is raised as ConversionError,
which the engine treats as terminal.
"""

import json
from email import message_from_bytes
from email.policy import HTTP
from typing import Any, Callable
from urllib.parse import parse_qs

from resilient_http.exceptions import ConversionError
from resilient_http.models.enums import ConvertType
from resilient_http.models.response_models import RawResponse

Converter = Callable[[RawResponse, ConvertType], Any]


def _to_json(response: RawResponse) -> Any:
    try:
        return json.loads(response.content.decode(response.charset or "utf-8"))
    except (LookupError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConversionError(
            f"Invalid JSON body: {e}", ConvertType.JSON, response=response
        ) from e


def _to_text(response: RawResponse) -> str:
    charset = response.charset or "utf-8"
    try:
        return response.content.decode(charset)
    except LookupError as e:
        raise ConversionError(
            f"Unknown charset: {charset}", ConvertType.TEXT, response=response
        ) from e
    except UnicodeDecodeError as e:
        raise ConversionError(
            f"Body is not valid {charset}: {e}", ConvertType.TEXT, response=response
        ) from e


def _to_form_data(response: RawResponse) -> dict[str, list[str]]:
    """Parse urlencoded or multipart/form-data bodies into name -> values."""
    content_type = response.content_type.lower()

    if content_type.startswith("multipart/form-data"):
        return _parse_multipart(response)

    charset = response.charset or "utf-8"
    try:
        text = response.content.decode(charset)
    except LookupError as e:
        raise ConversionError(
            f"Unknown charset: {charset}", ConvertType.FORMDATA, response=response
        ) from e
    except UnicodeDecodeError as e:
        raise ConversionError(
            f"Form body is not valid text: {e}", ConvertType.FORMDATA, response=response
        ) from e
    return parse_qs(text, keep_blank_values=True)


def _parse_multipart(response: RawResponse) -> dict[str, list[str]]:
    # email's MIME parser needs the Content-Type header in front of the body
    raw = f"Content-Type: {response.content_type}\r\n\r\n".encode("latin-1") + response.content
    message = message_from_bytes(raw, policy=HTTP)

    if not message.is_multipart():
        raise ConversionError(
            "multipart/form-data body has no parts", ConvertType.FORMDATA, response=response
        )

    fields: dict[str, list[str]] = {}
    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        if not name:
            continue
        payload = part.get_payload(decode=True) or b""
        charset = part.get_content_charset() or "utf-8"
        try:
            value = payload.decode(charset, errors="replace")
        except LookupError as e:
            raise ConversionError(
                f"Unknown charset in part '{name}': {charset}",
                ConvertType.FORMDATA,
                response=response,
            ) from e
        fields.setdefault(name, []).append(value)
    return fields


def convert(response: RawResponse, convert_type: ConvertType) -> Any:
    """
    Convert a successful response body.

    Args:
        response: Response with the fully-read body
        convert_type: Conversion tag

    Returns:
        JSON -> parsed value, TEXT -> str, BLOB/BYTES -> bytes,
        ARRAYBUFFER -> bytearray, FORMDATA -> dict[str, list[str]],
        RESPONSE -> the response itself

    Raises:
        ConversionError: The body cannot be converted to the requested type
    """
    convert_type = ConvertType(convert_type)

    if convert_type == ConvertType.RESPONSE:
        return response
    if convert_type == ConvertType.JSON:
        return _to_json(response)
    if convert_type == ConvertType.TEXT:
        return _to_text(response)
    if convert_type in (ConvertType.BLOB, ConvertType.BYTES):
        return bytes(response.content)
    if convert_type == ConvertType.ARRAYBUFFER:
        return bytearray(response.content)
    if convert_type == ConvertType.FORMDATA:
        return _to_form_data(response)

    raise ConversionError(f"Unsupported conversion: {convert_type}", convert_type, response=response)
