"""Structural model: declarations, namespaces, classes, modules."""

from .extractor import ModelExtractor, extract_model
from .loader import DeclarationBatch, load_declarations
from .models import (
    CapabilityTag,
    ClassUnit,
    Declaration,
    Model,
    Module,
    Namespace,
    NamespaceKind,
)

__all__ = [
    "CapabilityTag",
    "ClassUnit",
    "Declaration",
    "DeclarationBatch",
    "Model",
    "ModelExtractor",
    "Module",
    "Namespace",
    "NamespaceKind",
    "extract_model",
    "load_declarations",
]
