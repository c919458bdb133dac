from wallboard.models.record import ParseDiagnostics, Record, RecordSet, SampleRow

__all__ = [
    "ParseDiagnostics",
    "Record",
    "RecordSet",
    "SampleRow",
]
