import enum


class BaseEnum(str, enum.Enum):
    def __str__(self) -> str:
        return str(self.value)
