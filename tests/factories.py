"""
Builders for review, dataset and search models used across tests.
"""

from sciencedao.models.review import Dataset, DatasetSearchResult, HypothesisReview


def make_review(hypothesis_id="H1", novelty=8, feasibility=7, impact=9, rigor=8):
    """Build a review from sub-scores."""
    return HypothesisReview.from_scores(
        hypothesis_id,
        novelty=novelty,
        feasibility=feasibility,
        impact=impact,
        rigor=rigor,
        feedback="Solid design.",
        strengths=["Clear endpoint"],
        weaknesses=["Small cohort"],
        recommendations=["Add replication"],
    )


def make_dataset(name="Metabolic Aging Markers", source="Metabolomics Workbench", relevance=6.0):
    return Dataset(
        name=name,
        source=source,
        url="https://example.com/data",
        description="Mass spectrometry data of age-related metabolic changes",
        size="450 MB",
        format="mzML, CSV",
        relevance_score=relevance,
    )


def make_search(datasets=None, field="aging"):
    datasets = [make_dataset()] if datasets is None else datasets
    return DatasetSearchResult(datasets=datasets, total_found=len(datasets), field=field)
