"""
ScienceDAO research coordination core.

Sequences peer review, dataset curation and funding proposals for research
hypotheses, tracking every delegated step as a Job.
"""

__version__ = "0.4.0"
