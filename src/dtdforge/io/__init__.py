"""Input/output helpers for dtdforge."""

from dtdforge.io.matrices import (
    LabeledMatrix,
    check_row_names,
    named_vector,
    read_matrix,
    read_vector,
    write_matrix,
    write_result,
)

__all__ = [
    "LabeledMatrix",
    "check_row_names",
    "named_vector",
    "read_matrix",
    "read_vector",
    "write_matrix",
    "write_result",
]
