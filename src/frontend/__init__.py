"""Front-end adapters exposing C++ translation units as Source Models."""

from frontend.model import (
    Diagnostic,
    ExceptionSpec,
    Frontend,
    FrontendError,
    LoadedUnit,
    PresumedLocation,
    SourceModel,
)

__all__ = [
    "Diagnostic",
    "ExceptionSpec",
    "Frontend",
    "FrontendError",
    "LoadedUnit",
    "PresumedLocation",
    "SourceModel",
]
