"""

Small string helpers used when building error
messages. Messages are written inline as indented
triple quoted strings, and need the indentation
stripped before they are shown to anyone.

"""
from typing import List, Sequence

import torch


def dedent(string: str) -> str:
    """
    Removes the whitespace common to the beginning of
    every line. Lines consisting only of whitespace do
    not count when finding the common indent, so blank
    paragraph breaks inside a message do not ruin it.

    :param string: The string to dedent
    :return: The dedented string
    """
    lines = string.split("\n")

    indents: List[int] = []
    for line in lines:
        if line.strip():
            indents.append(len(line) - len(line.lstrip()))
    if not indents:
        return string

    cut = min(indents)
    output: List[str] = []
    for line in lines:
        if line.strip():
            output.append(line[cut:])
        else:
            output.append(line.strip(" \t"))
    return "\n".join(output)


def format_shape(shape: Sequence[int]) -> str:
    """Renders a shape as [a, b, c], which reads better than torch.Size(...)"""
    return "[" + ", ".join(str(int(dim)) for dim in shape) + "]"


def format_dtype(dtype: torch.dtype) -> str:
    return str(dtype).replace("torch.", "")
