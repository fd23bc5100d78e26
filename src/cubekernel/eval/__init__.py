"""Evaluation: values, the call-by-need machine, Kan operations, read-back."""

from cubekernel.eval.kan import Kan, cofibration, satisfies
from cubekernel.eval.machine import Evaluator
from cubekernel.eval.quote import Quoter, convertible
from cubekernel.eval.value import (
    I0,
    I1,
    Cofibration,
    ConstantLine,
    DimEnv,
    Environment,
    IOne,
    IVar,
    IZero,
    Lazy,
    TypeLine,
    Value,
    VLam,
    VNeutral,
    VPathLam,
    VPathType,
    VPi,
    VSmoothPathType,
    VUniverse,
)

__all__ = [
    "Evaluator",
    "Kan",
    "Quoter",
    "cofibration",
    "satisfies",
    "convertible",
    "Value",
    "VUniverse",
    "VPi",
    "VLam",
    "VPathType",
    "VSmoothPathType",
    "VPathLam",
    "VNeutral",
    "IZero",
    "IOne",
    "IVar",
    "I0",
    "I1",
    "Cofibration",
    "TypeLine",
    "ConstantLine",
    "Lazy",
    "Environment",
    "DimEnv",
]
