"""
Workflow step: parameter parsing and the read-or-create, add, write flow.
"""

from podcast_feed.step.params import StepParameters, build_new_items
from podcast_feed.step.runner import FeedAppendStep, run_step

__all__ = ["StepParameters", "build_new_items", "FeedAppendStep", "run_step"]
