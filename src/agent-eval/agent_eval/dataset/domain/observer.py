"""Observer port for the dataset domain — defines events in domain language."""

from typing import Protocol


class DatasetObserver(Protocol):
    def dataset_loading_started(self, path: str, input_key: str, output_key: str) -> None: ...

    def dataset_sample_loaded(self, sample_idx: str) -> None: ...

    def dataset_loading_completed(self, path: str, total_samples: int) -> None: ...

    def dataset_loading_failed(self, path: str, reason: str) -> None: ...
