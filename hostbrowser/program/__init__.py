"""Program synthesis for the hosted browser."""

from hostbrowser.program.interpreter import ProgramInterpreter
from hostbrowser.program.steps import Program, load_shim, validate_program
from hostbrowser.program.templates import CapabilityCall, ScriptTemplateEngine

__all__ = [
    "CapabilityCall",
    "Program",
    "ProgramInterpreter",
    "ScriptTemplateEngine",
    "load_shim",
    "validate_program",
]
