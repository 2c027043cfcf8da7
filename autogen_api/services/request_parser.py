import re
from dataclasses import dataclass

from autogen_api.errors import RequestParseError

OUTPUT_EXTENSIONS = ("jpg", "jpeg", "png", "webp")

DESIGN_NUMBER_PATTERN = re.compile(r"[A-Za-z0-9_]+")

# <product>-<variant>-<designNumber>.<ext>; the split point is the second hyphen
_REQUEST_PATTERN = re.compile(
    r"(?P<template>[A-Za-z0-9_]+-[A-Za-z0-9_]+)-(?P<design>[A-Za-z0-9_]+)\.(?P<ext>[A-Za-z0-9]+)"
)

@dataclass(frozen=True)
class RequestIdentifier:
    """Decoded ``<templateIdentifier>-<designNumber>.<ext>`` request"""
    template_identifier: str
    design_number: str
    extension: str
    
    @property
    def filename(self) -> str:
        return f"{self.template_identifier}-{self.design_number}.{self.extension}"

def is_valid_design_number(value: str) -> bool:
    return bool(value) and DESIGN_NUMBER_PATTERN.fullmatch(value) is not None

def parse_request_identifier(value: str) -> RequestIdentifier:
    """Split a request filename at its second hyphen.
    
    The template identifier always carries exactly one hyphen
    (``hoodie-black``) and the design number none, so
    ``hoodie-black-4001.jpg`` gives ``("hoodie-black", "4001", "jpg")``.
    
    Raises:
        RequestParseError: when the value has fewer than two hyphens, a
            hyphen inside the design number, an empty part, or a missing or
            unsupported extension.
    """
    if not value:
        raise RequestParseError("Request identifier is empty")
    
    stem, dot, extension = value.rpartition(".")
    if not dot or not stem:
        raise RequestParseError(f"Request identifier '{value}' has no extension", details={'value': value})
    if extension.lower() not in OUTPUT_EXTENSIONS:
        raise RequestParseError(
            f"Unsupported output extension '{extension}'",
            details={'value': value, 'allowed': list(OUTPUT_EXTENSIONS)}
        )
    if stem.count("-") < 2:
        raise RequestParseError(
            f"Request identifier '{value}' needs the form <product>-<variant>-<designNumber>.<ext>",
            details={'value': value}
        )
    
    match = _REQUEST_PATTERN.fullmatch(value)
    if match is None:
        raise RequestParseError(
            f"Request identifier '{value}' is malformed",
            details={'value': value}
        )
    
    return RequestIdentifier(
        template_identifier=match.group("template"),
        design_number=match.group("design"),
        extension=match.group("ext").lower(),
    )
