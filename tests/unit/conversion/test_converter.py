"""
Unit tests for response body conversion.
"""

import pytest

from resilient_http.conversion.converter import convert
from resilient_http.exceptions import ConversionError
from resilient_http.models.enums import ConvertType


def test_json_conversion(create_test_response):
    response = create_test_response(json_body={"items": [1, 2]})

    assert convert(response, ConvertType.JSON) == {"items": [1, 2]}


def test_json_conversion_accepts_string_tag(create_test_response):
    response = create_test_response(json_body=[1])

    assert convert(response, "json") == [1]


def test_invalid_json_raises_conversion_error(create_test_response):
    response = create_test_response(content=b"<html>oops</html>")

    with pytest.raises(ConversionError) as exc_info:
        convert(response, ConvertType.JSON)

    assert exc_info.value.convert_type == ConvertType.JSON
    assert exc_info.value.response is response


def test_empty_body_is_not_json(create_test_response):
    with pytest.raises(ConversionError):
        convert(create_test_response(content=b""), ConvertType.JSON)


def test_text_uses_declared_charset(create_test_response):
    response = create_test_response(
        content="café".encode("latin-1"),
        headers={"Content-Type": "text/plain; charset=latin-1"},
    )

    assert convert(response, ConvertType.TEXT) == "café"


def test_text_defaults_to_utf8(create_test_response):
    response = create_test_response(content="naïve".encode("utf-8"))

    assert convert(response, ConvertType.TEXT) == "naïve"


def test_text_with_invalid_bytes_raises(create_test_response):
    response = create_test_response(content=b"\xff\xfe\xfa")

    with pytest.raises(ConversionError):
        convert(response, ConvertType.TEXT)


def test_text_with_unknown_charset_raises(create_test_response):
    response = create_test_response(
        content=b"abc", headers={"Content-Type": "text/plain; charset=klingon"}
    )

    with pytest.raises(ConversionError, match="klingon"):
        convert(response, ConvertType.TEXT)


@pytest.mark.parametrize("tag", [ConvertType.BLOB, ConvertType.BYTES])
def test_binary_conversions_return_bytes(tag, create_test_response):
    response = create_test_response(content=b"\x00\x01\x02")

    result = convert(response, tag)

    assert result == b"\x00\x01\x02"
    assert type(result) is bytes


def test_arraybuffer_returns_mutable_copy(create_test_response):
    response = create_test_response(content=b"abc")

    result = convert(response, ConvertType.ARRAYBUFFER)

    assert isinstance(result, bytearray)
    result[0] = ord("z")
    assert response.content == b"abc"


def test_response_conversion_is_identity(create_test_response):
    response = create_test_response(204)

    assert convert(response, ConvertType.RESPONSE) is response


def test_urlencoded_form_data(create_test_response):
    response = create_test_response(
        content=b"name=Ada&tag=a&tag=b&empty=",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )

    assert convert(response, ConvertType.FORMDATA) == {
        "name": ["Ada"],
        "tag": ["a", "b"],
        "empty": [""],
    }


def test_multipart_form_data(create_test_response):
    body = (
        b"--XyZ\r\n"
        b'Content-Disposition: form-data; name="title"\r\n'
        b"\r\n"
        b"Hello\r\n"
        b"--XyZ\r\n"
        b'Content-Disposition: form-data; name="file"; filename="a.txt"\r\n'
        b"Content-Type: text/plain\r\n"
        b"\r\n"
        b"file body\r\n"
        b"--XyZ--\r\n"
    )
    response = create_test_response(
        content=body, headers={"Content-Type": "multipart/form-data; boundary=XyZ"}
    )

    result = convert(response, ConvertType.FORMDATA)

    assert result == {"title": ["Hello"], "file": ["file body"]}


def test_urlencoded_form_with_unknown_charset_raises(create_test_response):
    response = create_test_response(
        content=b"a=1",
        headers={"Content-Type": "application/x-www-form-urlencoded; charset=klingon"},
    )

    with pytest.raises(ConversionError, match="klingon") as exc_info:
        convert(response, ConvertType.FORMDATA)

    assert exc_info.value.convert_type == ConvertType.FORMDATA


def test_multipart_part_with_unknown_charset_raises(create_test_response):
    body = (
        b"--XyZ\r\n"
        b'Content-Disposition: form-data; name="title"\r\n'
        b"Content-Type: text/plain; charset=klingon\r\n"
        b"\r\n"
        b"Hello\r\n"
        b"--XyZ--\r\n"
    )
    response = create_test_response(
        content=body, headers={"Content-Type": "multipart/form-data; boundary=XyZ"}
    )

    with pytest.raises(ConversionError, match="title") as exc_info:
        convert(response, ConvertType.FORMDATA)

    assert exc_info.value.convert_type == ConvertType.FORMDATA


def test_unknown_tag_rejected(create_test_response):
    with pytest.raises(ValueError):
        convert(create_test_response(), "xml")
