from __future__ import annotations


class RecordMixin:
    """Maps an ORM row to/from its immutable record (facil.records)."""

    __record__ = None

    def to_record(self):
        cls = self.__record__
        row = {c.key: getattr(self, c.key) for c in self.__mapper__.columns}
        return cls.from_row(row)

    @classmethod
    def from_record(cls, record):
        return cls(**cls._record_columns(record))

    def apply_record(self, record) -> None:
        for key, value in self._record_columns(record).items():
            if key == "id":
                continue
            setattr(self, key, value)

    @classmethod
    def _record_columns(cls, record) -> dict:
        keys = {c.key for c in cls.__mapper__.columns}
        return {k: v for k, v in record.to_row().items() if k in keys}
