from __future__ import annotations

from avoscan.ai.labels import ripeness_category, ripeness_emoji
from avoscan.ai.types import ClassConfidence, ClassificationResult, Sample, TopPrediction
from avoscan.api.result_cache import LastResultCache


def _result() -> ClassificationResult:
    return ClassificationResult(
        predictions=(
            ClassConfidence("Matang", 0.72, 73),
            ClassConfidence("Setengah Matang", 0.2, 20),
            ClassConfidence("Mentah", 0.08, 7),
        ),
        top_prediction=TopPrediction("Matang", 0.72, 73, is_confident=True),
        is_demo=True,
        sample=Sample(51.0, 0.8, 0.33, 60.0, 50.0, 40.0),
    )


def test_cache_persists_between_instances(tmp_path) -> None:
    path = tmp_path / "last.json"
    LastResultCache(path).update(_result())

    assert LastResultCache(path).get() == _result()


def test_cache_without_path_is_memory_only(tmp_path) -> None:
    cache = LastResultCache()
    cache.update(_result())

    assert cache.get() == _result()
    assert list(tmp_path.iterdir()) == []


def test_clear_removes_file(tmp_path) -> None:
    path = tmp_path / "last.json"
    cache = LastResultCache(path)
    cache.update(_result())

    cache.clear()

    assert cache.get() is None
    assert not path.exists()


def test_corrupt_cache_file_is_ignored(tmp_path) -> None:
    path = tmp_path / "last.json"
    path.write_text('{"predictions": []}', encoding="utf-8")

    assert LastResultCache(path).get() is None


def test_ripeness_category_and_emoji() -> None:
    assert ripeness_category("Matang") == "result-ripe"
    assert ripeness_category("Setengah Matang") == "result-semi-ripe"
    assert ripeness_category("Mentah") == "result-unripe"
    assert ripeness_category("semi-ripe") == "result-semi-ripe"
    assert ripeness_category("unripe") == "result-unripe"
    assert ripeness_category("something else") == "result-ripe"
    assert ripeness_emoji("Setengah Matang") == "⚠️"
    assert ripeness_emoji("Mentah") == "❌"
    assert ripeness_emoji("Matang") == "✅"
