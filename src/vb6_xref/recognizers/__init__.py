# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Declaration recognizer plugins for VB6 source lines."""

from vb6_xref.recognizers.base import DeclarationRecognizer
from vb6_xref.recognizers.blocks import EnumBlockRecognizer, TypeBlockRecognizer
from vb6_xref.recognizers.body import ProcedureBodyRecognizer
from vb6_xref.recognizers.declarations import ConstantRecognizer, VariableRecognizer
from vb6_xref.recognizers.procedures import EventRecognizer, ProcedureRecognizer
from vb6_xref.recognizers.registry import RecognizerRegistry
from vb6_xref.recognizers.state import LineContext, ParseState
from vb6_xref.recognizers.structure import (
    AttributeRecognizer,
    FormDesignerRecognizer,
    ImplementsRecognizer,
    ProcedureEndRecognizer,
    WithRecognizer,
)


def create_default_registry() -> RecognizerRegistry:
    """Build a registry holding every built-in recognizer."""
    registry = RecognizerRegistry()
    for recognizer in (
        AttributeRecognizer(),
        FormDesignerRecognizer(),
        TypeBlockRecognizer(),
        EnumBlockRecognizer(),
        ProcedureEndRecognizer(),
        WithRecognizer(),
        ImplementsRecognizer(),
        ProcedureRecognizer(),
        EventRecognizer(),
        ConstantRecognizer(),
        VariableRecognizer(),
        ProcedureBodyRecognizer(),
    ):
        registry.register(recognizer)
    return registry


__all__ = [
    "DeclarationRecognizer",
    "LineContext",
    "ParseState",
    "RecognizerRegistry",
    "create_default_registry",
]
