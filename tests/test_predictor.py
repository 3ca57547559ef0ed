from __future__ import annotations

import io
import random
import unittest

from PIL import Image

from avoscan.ai.predictor import (
    AvocadoClassifier,
    Heuristic,
    ModelBacked,
    classify_image,
    predict,
    select_predictor,
)
from avoscan.ai.types import (
    ModelBackendError,
    ModelNotLoadedError,
    RawPrediction,
    RipenessLabels,
)


def _jpeg(color: tuple[int, int, int]) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (64, 64), color=color).save(buf, format="JPEG")
    return buf.getvalue()


class _StaticBackend:
    def __init__(self, predictions: list[RawPrediction]) -> None:
        self.predictions = predictions
        self.images: list[bytes] = []
        self.disposed = False

    def predict(self, image_bytes: bytes) -> list[RawPrediction]:
        self.images.append(image_bytes)
        return self.predictions

    def dispose(self) -> None:
        self.disposed = True


class _FailingBackend:
    def predict(self, image_bytes: bytes) -> list[RawPrediction]:
        raise ModelBackendError("model offline")


MODEL_PREDICTIONS = [
    RawPrediction("Mentah", 0.1),
    RawPrediction("Matang", 0.8),
    RawPrediction("Setengah Matang", 0.1),
]


class PredictorSelectionTests(unittest.TestCase):
    def test_select_heuristic_without_backend(self) -> None:
        labels = RipenessLabels(ripe="ripe", semi_ripe="semi", unripe="unripe")
        predictor = select_predictor(None, labels)
        self.assertIsInstance(predictor, Heuristic)
        self.assertEqual(predictor.labels, labels)

    def test_select_model_backed_with_backend(self) -> None:
        backend = _StaticBackend(MODEL_PREDICTIONS)
        predictor = select_predictor(backend)
        self.assertIsInstance(predictor, ModelBacked)
        self.assertIs(predictor.backend, backend)

    def test_predict_heuristic_returns_sample(self) -> None:
        raw, sample, is_demo = predict(Heuristic(), _jpeg((60, 50, 40)), random.Random(3))
        self.assertTrue(is_demo)
        self.assertIsNotNone(sample)
        self.assertEqual(len(raw), 3)

    def test_predict_model_backed_passes_encoded_image(self) -> None:
        backend = _StaticBackend(MODEL_PREDICTIONS)
        image = Image.new("RGB", (32, 32), color=(10, 20, 30))

        raw, sample, is_demo = predict(ModelBacked(backend), image, random.Random(0))

        self.assertFalse(is_demo)
        self.assertIsNone(sample)
        self.assertEqual(raw, MODEL_PREDICTIONS)
        self.assertTrue(backend.images[0].startswith(b"\xff\xd8"))

    def test_predict_rejects_unknown_predictor(self) -> None:
        with self.assertRaises(TypeError):
            predict(object(), b"", random.Random(0))  # type: ignore[arg-type]


class ClassifyImageTests(unittest.TestCase):
    def test_heuristic_pipeline_on_green_image(self) -> None:
        result = classify_image(_jpeg((80, 170, 60)), Heuristic(), random.Random(7))

        self.assertTrue(result.is_demo)
        self.assertIsNotNone(result.sample)
        self.assertEqual(result.top_prediction.class_name, "Mentah")
        self.assertEqual(sum(item.confidence for item in result.predictions), 100)

    def test_heuristic_pipeline_on_dark_image(self) -> None:
        result = classify_image(_jpeg((40, 30, 25)), Heuristic(), random.Random(7))

        self.assertEqual(result.top_prediction.class_name, "Matang")
        self.assertTrue(result.top_prediction.is_confident)

    def test_model_pipeline_is_not_demo(self) -> None:
        backend = _StaticBackend(MODEL_PREDICTIONS)
        result = classify_image(_jpeg((1, 2, 3)), ModelBacked(backend), random.Random(1))

        self.assertFalse(result.is_demo)
        self.assertIsNone(result.sample)
        self.assertEqual(result.top_prediction.class_name, "Matang")
        self.assertTrue(result.top_prediction.is_confident)
        self.assertEqual(sum(item.confidence for item in result.predictions), 100)

    def test_same_seed_gives_same_result(self) -> None:
        image = _jpeg((90, 120, 70))
        first = classify_image(image, Heuristic(), random.Random(42))
        second = classify_image(image, Heuristic(), random.Random(42))
        self.assertEqual(first, second)

    def test_works_without_explicit_random_source(self) -> None:
        result = classify_image(_jpeg((90, 120, 70)), Heuristic())
        self.assertEqual(sum(item.confidence for item in result.predictions), 100)


class AvocadoClassifierTests(unittest.TestCase):
    def test_classify_before_load_raises(self) -> None:
        classifier = AvocadoClassifier()
        with self.assertRaises(ModelNotLoadedError):
            classifier.classify(_jpeg((1, 1, 1)))

    def test_demo_mode_without_model_url(self) -> None:
        classifier = AvocadoClassifier()
        result = classifier.load_model()

        self.assertTrue(result.success)
        self.assertEqual(result.message, "Demo mode activated")
        self.assertTrue(classifier.is_demo)
        self.assertTrue(classifier.classify(_jpeg((40, 30, 25))).is_demo)

    def test_loads_backend_from_factory(self) -> None:
        backend = _StaticBackend(MODEL_PREDICTIONS)
        requested: list[str] = []

        def factory(url: str) -> _StaticBackend:
            requested.append(url)
            return backend

        classifier = AvocadoClassifier(model_url="https://models.example/avocado/", backend_factory=factory)
        result = classifier.load_model()

        self.assertTrue(result.success)
        self.assertEqual(requested, ["https://models.example/avocado/"])
        self.assertFalse(classifier.is_demo)
        classified = classifier.classify(_jpeg((1, 2, 3)), random.Random(0))
        self.assertEqual(classified.top_prediction.class_name, "Matang")

    def test_load_failure_is_reported_not_raised(self) -> None:
        def factory(url: str) -> _StaticBackend:
            raise ModelBackendError("unreachable")

        classifier = AvocadoClassifier(model_url="https://models.example/", backend_factory=factory)
        result = classifier.load_model()

        self.assertFalse(result.success)
        self.assertEqual(result.error, "unreachable")
        self.assertFalse(classifier.is_loaded)

    def test_backend_errors_propagate(self) -> None:
        classifier = AvocadoClassifier(
            model_url="https://models.example/", backend_factory=lambda url: _FailingBackend()
        )
        classifier.load_model()
        with self.assertRaises(ModelBackendError):
            classifier.classify(_jpeg((1, 2, 3)))

    def test_dispose_releases_backend(self) -> None:
        backend = _StaticBackend(MODEL_PREDICTIONS)
        classifier = AvocadoClassifier(
            model_url="https://models.example/", backend_factory=lambda url: backend
        )
        classifier.load_model()

        classifier.dispose()

        self.assertTrue(backend.disposed)
        self.assertFalse(classifier.is_loaded)

    def test_dispose_during_classify_does_not_break_running_call(self) -> None:
        holder: list[AvocadoClassifier] = []

        class _DisposingBackend(_StaticBackend):
            def predict(self, image_bytes: bytes) -> list[RawPrediction]:
                holder[0].dispose()
                return super().predict(image_bytes)

        backend = _DisposingBackend(MODEL_PREDICTIONS)
        classifier = AvocadoClassifier(
            model_url="https://models.example/", backend_factory=lambda url: backend
        )
        classifier.load_model()
        holder.append(classifier)

        result = classifier.classify(_jpeg((1, 2, 3)), random.Random(3))

        self.assertEqual(result.top_prediction.class_name, "Matang")
        self.assertTrue(backend.disposed)
        self.assertFalse(classifier.is_loaded)


if __name__ == "__main__":
    unittest.main()
