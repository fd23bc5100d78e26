"""Value representations for the cubical kernel.

Values are immutable once built and shared by reference. Environments are
persistent cons lists: extending one never copies or mutates the parent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional

from cubekernel.core.ast import Term
from cubekernel.core.errors import UnboundDimension, UnboundVariable

# =============================================================================
# Interval values
# =============================================================================


@dataclass(frozen=True)
class IZero:
    """The 0 endpoint."""

    def __str__(self) -> str:
        return "0"


@dataclass(frozen=True)
class IOne:
    """The 1 endpoint."""

    def __str__(self) -> str:
        return "1"


@dataclass(frozen=True)
class IVar:
    """Generic interval variable, identified by de Bruijn level."""

    level: int

    def __str__(self) -> str:
        return f"i@{self.level}"


Interval = IZero | IOne | IVar

I0 = IZero()
I1 = IOne()

# Probe dimensions used to inspect the shape of a type family sit far below
# any level a context or free face variable can produce.
PROBE_LEVEL_BASE = -(1 << 30)


def endpoint_of(dim: Interval) -> int | None:
    """Return 0 or 1 for an endpoint, None for a variable."""
    match dim:
        case IZero():
            return 0
        case IOne():
            return 1
        case _:
            return None


# =============================================================================
# Face formulas, evaluated
# =============================================================================

Clause = frozenset[tuple[int, int]]


def _consistent(clause: Clause) -> bool:
    levels = [level for level, _ in clause]
    return len(levels) == len(set(levels))


def _normalize(clauses: list[Clause]) -> tuple[Clause, ...]:
    unique = {clause for clause in clauses if _consistent(clause)}
    if frozenset() in unique:
        return (frozenset(),)
    return tuple(sorted(unique, key=lambda clause: tuple(sorted(clause))))


@dataclass(frozen=True)
class Cofibration:
    """A face formula after evaluation, in disjunctive normal form.

    Each clause is a set of (level, endpoint) constraints on generic
    interval variables. No clauses is ⊥; a single empty clause is ⊤.
    Clauses that constrain one variable to both endpoints are dropped.
    """

    clauses: tuple[Clause, ...]

    @staticmethod
    def top() -> "Cofibration":
        return Cofibration((frozenset(),))

    @staticmethod
    def bottom() -> "Cofibration":
        return Cofibration(())

    @staticmethod
    def eq(dim: Interval, endpoint: int) -> "Cofibration":
        """The formula ``dim = endpoint``."""
        match dim:
            case IVar(level):
                return Cofibration((frozenset({(level, endpoint)}),))
            case _:
                return Cofibration.top() if endpoint_of(dim) == endpoint else Cofibration.bottom()

    def is_true(self) -> bool:
        return frozenset() in self.clauses

    def is_false(self) -> bool:
        return not self.clauses

    def meet(self, other: "Cofibration") -> "Cofibration":
        return Cofibration(_normalize([c1 | c2 for c1 in self.clauses for c2 in other.clauses]))

    def join(self, other: "Cofibration") -> "Cofibration":
        return Cofibration(_normalize(list(self.clauses) + list(other.clauses)))

    def __str__(self) -> str:
        if self.is_false():
            return "⊥"
        if self.is_true():
            return "⊤"
        rendered = [
            " ∧ ".join(f"(i@{level}={endpoint})" for level, endpoint in sorted(clause))
            for clause in self.clauses
        ]
        return " ∨ ".join(rendered)


# =============================================================================
# Closures
# =============================================================================


@dataclass(frozen=True, eq=False)
class Closure:
    """Term binder body with captured environments."""

    env: "Environment"
    dims: "DimEnv"
    body: Term

    def __str__(self) -> str:
        return "<closure>"


@dataclass(frozen=True, eq=False)
class NativeClosure:
    """Term binder body built by a Kan operation."""

    fn: Callable[["Value"], "Value"]

    def __str__(self) -> str:
        return "<native-closure>"


@dataclass(frozen=True, eq=False)
class DimClosure:
    """Interval binder body with captured environments."""

    env: "Environment"
    dims: "DimEnv"
    body: Term

    def __str__(self) -> str:
        return "<dim-closure>"


@dataclass(frozen=True, eq=False)
class NativeDimClosure:
    """Interval binder body built by a Kan operation."""

    fn: Callable[[Interval], "Value"]

    def __str__(self) -> str:
        return "<native-dim-closure>"


AnyClosure = Closure | NativeClosure
AnyDimClosure = DimClosure | NativeDimClosure


@dataclass(frozen=True, eq=False)
class TypeLine:
    """Type family over one interval variable.

    ``constant`` is set when the family provably ignores its direction.
    """

    closure: AnyDimClosure
    constant: bool = False

    def __str__(self) -> str:
        return "<type-line>"


@dataclass(frozen=True, eq=False)
class ConstantLine:
    """Dimension-independent type family j ↦ ty."""

    ty: "Value"

    def __str__(self) -> str:
        return f"<const {self.ty}>"


Line = TypeLine | ConstantLine

# Evaluated face constraint: formula and tube over the composition direction
KanFace = tuple[Cofibration, AnyDimClosure]


# =============================================================================
# Values
# =============================================================================


@dataclass(frozen=True)
class VUniverse:
    """Universe value."""

    level: int

    def __str__(self) -> str:
        return f"Type{self.level}"


@dataclass(frozen=True, eq=False)
class VPi:
    """Dependent function type with lazy codomain."""

    name: str
    domain: "Value"
    closure: AnyClosure

    def __str__(self) -> str:
        return f"(({self.name} : {self.domain}) → ...)"


@dataclass(frozen=True, eq=False)
class VLam:
    """Lambda closure."""

    name: str
    closure: AnyClosure

    def __str__(self) -> str:
        return f"λ{self.name}. ..."


@dataclass(frozen=True, eq=False)
class VPathType:
    """Path type value."""

    ty: "Value"
    left: "Value"
    right: "Value"

    def __str__(self) -> str:
        return f"Path {self.ty} {self.left} {self.right}"


@dataclass(frozen=True, eq=False)
class VSmoothPathType:
    """Smooth path type value with differentiability order."""

    order: int
    ty: "Value"
    left: "Value"
    right: "Value"

    def __str__(self) -> str:
        return f"SmoothPath^{self.order} {self.ty} {self.left} {self.right}"


@dataclass(frozen=True, eq=False)
class VPathLam:
    """Path abstraction closure."""

    name: str
    closure: AnyDimClosure

    def __str__(self) -> str:
        return f"⟨{self.name}⟩ ..."


@dataclass(frozen=True, eq=False)
class VNeutral:
    """Neutral term (stuck computation).

    ``ty`` is the type of the stuck value when it is known. It lets
    eliminators compute types of their results and reduce path
    applications at endpoints; it plays no part in conversion.
    """

    neutral: "Neutral"
    ty: Optional["Value"] = None

    def __str__(self) -> str:
        return str(self.neutral)


# =============================================================================
# Neutrals
# =============================================================================


@dataclass(frozen=True, eq=False)
class NVar:
    """Variable by de Bruijn level."""

    level: int

    def __str__(self) -> str:
        return f"x@{self.level}"


@dataclass(frozen=True, eq=False)
class NApp:
    """Application stuck on a neutral function."""

    func: "Neutral"
    arg: "Value"

    def __str__(self) -> str:
        return f"({self.func} {self.arg})"


@dataclass(frozen=True, eq=False)
class NPathApp:
    """Path application stuck on a neutral path."""

    path: "Neutral"
    dim: Interval

    def __str__(self) -> str:
        return f"({self.path} @ {self.dim})"


@dataclass(frozen=True, eq=False)
class NComp:
    """Pending composition in a type family with no structural rule."""

    family: Line
    base: "Value"
    faces: tuple[KanFace, ...]
    source: Interval
    target: Interval

    def __str__(self) -> str:
        return f"<comp {self.source}→{self.target} {self.base}>"


@dataclass(frozen=True, eq=False)
class NCoe:
    """Pending coercion in a type family with no structural rule."""

    family: Line
    source: Interval
    target: Interval
    base: "Value"

    def __str__(self) -> str:
        return f"<coe {self.source}→{self.target} {self.base}>"


Neutral = NVar | NApp | NPathApp | NComp | NCoe

# Sum type for all values
Value = VUniverse | VPi | VLam | VPathType | VSmoothPathType | VPathLam | VNeutral


# =============================================================================
# Call-by-need thunks
# =============================================================================


class Lazy:
    """Memoizing thunk for a value that has not been computed yet.

    Forcing twice runs the computation at most once per thread; since
    evaluation is deterministic every run yields the same value.
    """

    __slots__ = ("_thunk", "_value")

    def __init__(self, thunk: Callable[[], Value]):
        self._thunk: Callable[[], Value] | None = thunk
        self._value: Value | None = None

    def force(self) -> Value:
        thunk = self._thunk
        if thunk is not None:
            self._value = thunk()
            self._thunk = None
        return self._value  # type: ignore[return-value]

    @property
    def is_forced(self) -> bool:
        return self._thunk is None

    def __str__(self) -> str:
        return str(self._value) if self.is_forced else "<thunk>"


def force(entry: Any) -> Any:
    """Force a Lazy entry; pass anything else through."""
    return entry.force() if isinstance(entry, Lazy) else entry


# =============================================================================
# Environments
# =============================================================================


@dataclass(frozen=True, eq=False)
class Environment:
    """Evaluation environment mapping de Bruijn indices to values.

    Index 0 is the most recently bound variable. Entries may be ``Lazy``
    thunks; ``lookup`` forces them.
    """

    head: Any = None
    tail: Optional["Environment"] = None
    size: int = 0

    @staticmethod
    def empty() -> "Environment":
        """Create an empty environment."""
        return _EMPTY_ENV

    @staticmethod
    def of(*values: Any) -> "Environment":
        """Build an environment; the last argument becomes index 0."""
        env = Environment.empty()
        for value in values:
            env = env.extend(value)
        return env

    def extend(self, value: Any) -> "Environment":
        """Add value at index 0; the parent stays valid."""
        return Environment(value, self, self.size + 1)

    def lookup(self, index: int) -> Any:
        """Lookup value by de Bruijn index."""
        if index < 0 or index >= self.size:
            raise UnboundVariable(index)
        node = self
        for _ in range(index):
            node = node.tail  # type: ignore[assignment]
        return force(node.head)

    def __iter__(self) -> Iterator[Any]:
        """Iterate entries from index 0 outward, forcing thunks."""
        node = self
        while node.size > 0:
            yield force(node.head)
            node = node.tail  # type: ignore[assignment]

    def __len__(self) -> int:
        return self.size

    def __str__(self) -> str:
        return f"Environment({self.size} bindings)"


_EMPTY_ENV = Environment()


@dataclass(frozen=True, eq=False)
class DimEnv:
    """Interval environment mapping interval indices to interval values."""

    head: Optional[Interval] = None
    tail: Optional["DimEnv"] = None
    size: int = 0

    @staticmethod
    def empty() -> "DimEnv":
        return _EMPTY_DIM_ENV

    @staticmethod
    def of(*dims: Interval) -> "DimEnv":
        """Build an interval environment; the last argument becomes index 0."""
        env = DimEnv.empty()
        for dim in dims:
            env = env.extend(dim)
        return env

    def extend(self, dim: Interval) -> "DimEnv":
        return DimEnv(dim, self, self.size + 1)

    def lookup(self, index: int) -> Interval:
        if index < 0 or index >= self.size:
            raise UnboundDimension(index)
        node = self
        for _ in range(index):
            node = node.tail  # type: ignore[assignment]
        return node.head  # type: ignore[return-value]

    def substitute(self, assignment: dict[int, int]) -> "DimEnv":
        """Replace generic variables by endpoints, ``{level: endpoint}``.

        Builds a new environment; the original is untouched.
        """
        entries = list(self)
        result = DimEnv.empty()
        for dim in reversed(entries):
            if isinstance(dim, IVar) and dim.level in assignment:
                dim = I0 if assignment[dim.level] == 0 else I1
            result = result.extend(dim)
        return result

    def __iter__(self) -> Iterator[Interval]:
        node = self
        while node.size > 0:
            yield node.head  # type: ignore[misc]
            node = node.tail  # type: ignore[assignment]

    def __len__(self) -> int:
        return self.size

    def __str__(self) -> str:
        return "DimEnv(" + ", ".join(str(dim) for dim in self) + ")"


_EMPTY_DIM_ENV = DimEnv()


def generic_var(level: int, ty: Optional[Value] = None) -> VNeutral:
    """Fresh variable value at a de Bruijn level."""
    return VNeutral(NVar(level), ty)
