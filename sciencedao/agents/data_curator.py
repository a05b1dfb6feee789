"""
Data Curator agent.

Finds datasets relevant to a hypothesis and tracks search statistics.
"""

import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from sciencedao.models.review import Dataset, DatasetSearchResult

logger = logging.getLogger(__name__)

DEFAULT_SOURCES = ["Kaggle", "UCI ML", "PubMed Central", "data.gov"]


class CuratorStatus(str, Enum):
    """Activity status of the data curator."""
    IDLE = "idle"
    ACTIVE = "active"


class DataCuratorState(BaseModel):
    """Snapshot of data curator statistics."""
    datasets_found: int = 0
    searches_performed: int = 0
    sources: List[str] = Field(default_factory=lambda: list(DEFAULT_SOURCES))
    status: CuratorStatus = CuratorStatus.IDLE
    last_search: Optional[datetime] = None


class CuratorStats:
    """Thread-safe rolling statistics for dataset searches."""

    def __init__(self, sources: Optional[Sequence[str]] = None):
        self._lock = threading.Lock()
        self._sources = list(sources) if sources is not None else list(DEFAULT_SOURCES)
        self._state = DataCuratorState(sources=list(self._sources))

    def record_curation(self, datasets_found: int):
        """
        Record one completed search.

        Args:
            datasets_found: Number of datasets the search returned
        """
        if datasets_found < 0:
            raise ValueError("datasets_found cannot be negative")

        with self._lock:
            self._state.searches_performed += 1
            self._state.datasets_found += datasets_found
            self._state.last_search = datetime.now(timezone.utc)
            self._state.status = CuratorStatus.ACTIVE

    def snapshot(self) -> DataCuratorState:
        """Copy of the current statistics."""
        with self._lock:
            return self._state.model_copy(deep=True)

    def reset(self):
        """Reset all statistics."""
        with self._lock:
            self._state = DataCuratorState(sources=list(self._sources))


DEFAULT_CATALOG = [
    Dataset(
        name="Human Aging Longitudinal Study",
        source="UCSD Aging Center",
        url="https://example.com/aging-data",
        description="Longitudinal data on aging biomarkers from 10,000 participants over 20 years",
        size="2.5 GB",
        format="CSV, JSON",
    ),
    Dataset(
        name="Cellular Senescence Gene Expression",
        source="GEO Database",
        url="https://example.com/senescence-genes",
        description="RNA-seq data of senescent vs non-senescent cells across multiple cell types",
        size="850 MB",
        format="GEO, CSV",
    ),
    Dataset(
        name="Longevity Gene Association Study",
        source="NIH GenBank",
        url="https://example.com/longevity-gwas",
        description="GWAS data associating genetic variants with exceptional longevity",
        size="1.2 GB",
        format="VCF, PLINK",
    ),
    Dataset(
        name="Metabolic Aging Markers",
        source="Metabolomics Workbench",
        url="https://example.com/metabolic-aging",
        description="Mass spectrometry data of age-related metabolic changes",
        size="450 MB",
        format="mzML, CSV",
    ),
    Dataset(
        name="NAD+ Metabolism Dataset",
        source="Human Metabolome Database",
        url="https://example.com/nad-metabolism",
        description="Comprehensive NAD+ metabolite measurements across age groups",
        size="120 MB",
        format="CSV, XML",
    ),
    Dataset(
        name="Autophagy Pathway Analysis",
        source="KEGG Database",
        url="https://example.com/autophagy-pathways",
        description="Pathway analysis data for autophagy-related genes and proteins",
        size="200 MB",
        format="KGML, JSON",
    ),
]


def calculate_relevance(dataset: Dataset, hypothesis: str, field: str) -> float:
    """
    Keyword relevance of a dataset to a hypothesis, on a 0-10 scale.

    Every query word longer than three characters that appears in the
    dataset's name, description or source adds two points.
    """
    text = f"{dataset.name} {dataset.description} {dataset.source}".lower()
    keywords = f"{hypothesis} {field}".lower().split()

    score = sum(1 for keyword in keywords if len(keyword) > 3 and keyword in text)
    return float(min(10, score * 2))


class CatalogDatasetCurator:
    """Dataset curator that ranks a fixed catalog by keyword relevance."""

    def __init__(self, catalog: Optional[Sequence[Dataset]] = None):
        self.catalog = list(catalog) if catalog is not None else list(DEFAULT_CATALOG)

    def find_datasets(self, hypothesis: str, field: str, max_results: int = 3) -> DatasetSearchResult:
        """
        Find the datasets most relevant to a hypothesis.

        Args:
            hypothesis: Hypothesis text
            field: Research field
            max_results: Maximum datasets to return

        Returns:
            DatasetSearchResult with only datasets of non-zero relevance

        Raises:
            ValueError: If hypothesis or field is empty, or max_results < 1
        """
        if not hypothesis or not field:
            raise ValueError("Missing required arguments: hypothesis and field are required")
        if max_results < 1:
            raise ValueError("max_results must be at least 1")

        scored = [
            dataset.model_copy(update={"relevance_score": calculate_relevance(dataset, hypothesis, field)})
            for dataset in self.catalog
        ]
        scored.sort(key=lambda d: d.relevance_score, reverse=True)
        top = [d for d in scored[:max_results] if d.relevance_score > 0]

        logger.info(f"Found {len(top)} relevant datasets for {field} research")
        return DatasetSearchResult(datasets=top, total_found=len(top), field=field)
