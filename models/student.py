from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class Student:
    id: str
    roster_id: str
    first_name: str
    last_name: str
    student_id: Optional[str] = None   # School-issued id, may be absent
    ratings: Dict[str, float] = field(default_factory=dict)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def short_name(self) -> str:
        """First name plus last initial, for seat labels."""
        initial = f" {self.last_name[0]}." if self.last_name else ""
        return f"{self.first_name}{initial}"
