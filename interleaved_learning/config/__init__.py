# Config モジュール
from interleaved_learning.config.study_config import StudyConfig, study_config

__all__ = [
    "StudyConfig",
    "study_config",
]
