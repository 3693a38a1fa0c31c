from dataclasses import dataclass, field


@dataclass
class RuleFailure:
    rule_id: str
    error: str
    stage: str              # 'claim' | 'insert' | 'advance'


@dataclass
class RunSummary:
    as_of_date: str         # 'YYYY-MM-DD'
    processed: list[str] = field(default_factory=list)
    failed: list[RuleFailure] = field(default_factory=list)
    skipped_duplicates: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)   # already advanced by another run

    @property
    def processed_count(self) -> int:
        return len(self.processed)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def success(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "as_of_date": self.as_of_date,
            "processed": self.processed_count,
            "errors": self.failed_count,
            "details": {
                "processed": list(self.processed),
                "skipped_duplicates": list(self.skipped_duplicates),
                "skipped": list(self.skipped),
                "errors": [
                    {"id": f.rule_id, "error": f.error, "stage": f.stage}
                    for f in self.failed
                ],
            },
        }
