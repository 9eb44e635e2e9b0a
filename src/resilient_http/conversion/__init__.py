"""Response body conversion (JSON, text, bytes, form data, raw response)."""

from resilient_http.conversion.converter import Converter, convert

__all__ = ["Converter", "convert"]
