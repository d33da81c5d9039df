from salon_scheduler.filler.scheduler import FillerAction, FillerRunReport, FillerScheduler
from salon_scheduler.filler.selection import Candidate, collect_candidates, pick_candidate

__all__ = [
    "FillerScheduler", "FillerRunReport", "FillerAction",
    "Candidate", "collect_candidates", "pick_candidate",
]
