"""Interpreter-free R parser producing call/argument expression trees."""

from rdeps.rlang.nodes import Arg, Call, Constant, Formals, Missing, Node, Symbol
from rdeps.rlang.parser import parse_program

__all__ = ["Arg", "Call", "Constant", "Formals", "Missing", "Node", "Symbol", "parse_program"]
