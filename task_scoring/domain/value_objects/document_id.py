from dataclasses import dataclass
import re
import uuid

_OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")


@dataclass(frozen=True)
class DocumentId:
    """ドキュメントストアのキーを表すバリューオブジェクト"""
    value: str

    def __post_init__(self):
        if not self.is_valid(self.value):
            raise ValueError(f"Invalid document id format: {self.value}")

    @staticmethod
    def is_valid(value: object) -> bool:
        """24桁の16進数（ObjectId 形式）または UUID 形式なら有効"""
        if not isinstance(value, str) or not value:
            return False

        if _OBJECT_ID_PATTERN.match(value):
            return True

        try:
            uuid.UUID(value)
            return True
        except ValueError:
            return False

    def __str__(self) -> str:
        return self.value
