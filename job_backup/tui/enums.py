from enum import Enum


class UIStyle(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    CYAN = "cyan"
    MAGENTA = "magenta"
    DIM = "dim"
    WHITE = "white"


class CandidateStatus(str, Enum):
    CREATE = "create"
    UPDATE = "update"


CANDIDATE_STATUS_STYLE = {
    CandidateStatus.CREATE: UIStyle.GREEN.value,
    CandidateStatus.UPDATE: UIStyle.CYAN.value,
}
