# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Base interface for declaration recognizer plugins.

Each recognizer handles one line shape of the VB6 grammar (procedure
headers, Type blocks, variable declarations, ...). The ModuleParser offers
every logical line to the registered recognizers in priority order; the
first one that consumes the line stops dispatch for that line.
"""

from abc import ABC, abstractmethod

from vb6_xref.recognizers.state import LineContext, ParseState


class DeclarationRecognizer(ABC):
    """Abstract base class for declaration recognizer plugins.

    Design Pattern:
    - Recognizers keep no per-file state of their own; everything lives in ParseState
    - Higher priority recognizers see the line first
    - A recognizer may update state and still return False to let later
      recognizers look at the same line (e.g. a local Dim followed by a call)

    Priority Guidelines:
    - 150+: Block structure (attributes, designer, Type/Enum, procedure end)
    - 100-149: Declarations (procedures, events, constants, variables)
    - 0-99: Procedure body scanning
    """

    @abstractmethod
    def recognize(self, ctx: LineContext, state: ParseState) -> bool:
        """Inspect one logical line.

        Args:
            ctx: The current logical line.
            state: Parse state for the module.

        Returns:
            True if the line was consumed and dispatch should stop.

        Design Notes:
        - Recognizers MUST NOT raise on malformed input; return False instead
        - Physical line numbers MUST come from state.locate() or ctx.physical_line
        """
        pass

    @abstractmethod
    def priority(self) -> int:
        """Return recognizer priority. Higher values run first."""
        pass

    @abstractmethod
    def name(self) -> str:
        """Return recognizer name for logging and debugging."""
        pass
