import numpy as np
import pytest

from calendar_extractor.models import Recognition, Region
from calendar_extractor.ocr_engine import TesseractExtractor, extract_fragments, get_extractor


class CannedExtractor:
    """Returns recognition results keyed by region origin."""

    def __init__(self, results):
        self.results = results
        self.calls = []

    def recognize(self, image, region):
        self.calls.append(region)
        result = self.results[(region.x, region.y)]
        if isinstance(result, Exception):
            raise result
        return result


def test_extract_fragments_keeps_recognized_text():
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    regions = [Region(0, 0, 10, 10), Region(20, 0, 10, 10)]
    extractor = CannedExtractor({
        (0, 0): Recognition("  31 Task \n", 88.0),
        (20, 0): Recognition("1 Work", 75.5),
    })
    fragments = extract_fragments(image, regions, extractor)
    assert [(f.text, f.region, f.confidence) for f in fragments] == [
        ("31 Task", regions[0], 88.0),
        ("1 Work", regions[1], 75.5),
    ]


def test_extract_fragments_drops_failed_and_empty_regions():
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    regions = [Region(0, 0, 10, 10), Region(20, 0, 10, 10), Region(40, 0, 10, 10), Region(60, 0, 10, 10)]
    extractor = CannedExtractor({
        (0, 0): RuntimeError("tesseract crashed"),
        (20, 0): Recognition("   ", 10.0),
        (40, 0): Recognition("", 0.0),
        (60, 0): Recognition("12 Gym", 91.0),
    })
    fragments = extract_fragments(image, regions, extractor)
    assert [f.text for f in fragments] == ["12 Gym"]
    assert extractor.calls == regions


def test_extract_fragments_no_regions():
    image = np.zeros((10, 10, 3), dtype=np.uint8)
    assert extract_fragments(image, [], CannedExtractor({})) == []


def test_tesseract_skips_empty_crop():
    image = np.zeros((10, 10, 3), dtype=np.uint8)
    result = TesseractExtractor().recognize(image, Region(20, 20, 5, 5))
    assert result.is_empty


def test_get_extractor():
    assert isinstance(get_extractor("tesseract"), TesseractExtractor)
    with pytest.raises(ValueError):
        get_extractor("paddle")
