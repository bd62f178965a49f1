from enum import Enum


class ExerciseType(str, Enum):
    REPS_ONLY = "reps_only"
    DURATION_ONLY = "duration_only"
    WEIGHTED = "weighted"
    ASSISTED = "assisted"


class SetType(str, Enum):
    NORMAL = "normal"
    WARMUP = "warmup"
    DROP = "drop"
    FAILURE = "failure"


class GroupingKind(str, Enum):
    SUPERSET = "superset"
    CIRCUIT = "circuit"
    GIANT_SET = "giant_set"


def enum_values(enum_cls) -> list[str]:
    # persist the lowercase wire values rather than member names
    return [member.value for member in enum_cls]
