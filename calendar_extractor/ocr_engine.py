"""
OCR Engine — Reads the text inside each marked region using Tesseract or EasyOCR.

Recognition is an injected capability: anything with a
`recognize(image, region) -> Recognition` method can be passed to
`extract_fragments`, which is how the parser is tested without an OCR engine.
"""

import logging
from typing import Protocol
import cv2
import numpy as np
import pytesseract

from .models import Recognition, RecognizedFragment, Region

logger = logging.getLogger(__name__)

TESSERACT_CONFIG = "--psm 6"
MIN_WORD_CONFIDENCE = 30


class TextExtractor(Protocol):
    def recognize(self, image: np.ndarray, region: Region) -> Recognition:
        ...


def _preprocess_for_ocr(image: np.ndarray) -> np.ndarray:
    if len(image.shape) == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    else:
        gray = image.copy()
    clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8))
    enhanced = clahe.apply(gray)
    denoised = cv2.fastNlMeansDenoising(enhanced, h=10)
    kernel = np.array([[-1, -1, -1], [-1, 9, -1], [-1, -1, -1]])
    sharpened = cv2.filter2D(denoised, -1, kernel)
    return sharpened


class TesseractExtractor:
    name = "tesseract"

    def __init__(self, config: str = TESSERACT_CONFIG, lang: str = "eng"):
        self.config = config
        self.lang = lang

    def recognize(self, image: np.ndarray, region: Region) -> Recognition:
        crop = region.crop_from(image)
        if crop.size == 0:
            return Recognition()
        processed = _preprocess_for_ocr(crop)
        data = pytesseract.image_to_data(processed, lang=self.lang, config=self.config,
                                         output_type=pytesseract.Output.DICT)

        # Rebuild the text line by line so multi-line cells keep their breaks
        lines: dict[tuple[int, int], list[str]] = {}
        confs = []
        for i, word in enumerate(data["text"]):
            word = word.strip()
            conf = float(data["conf"][i])
            if not word or conf < MIN_WORD_CONFIDENCE:
                continue
            key = (data["block_num"][i], data["line_num"][i])
            lines.setdefault(key, []).append(word)
            confs.append(conf)

        text = "\n".join(" ".join(words) for _, words in sorted(lines.items()))
        confidence = float(np.mean(confs)) if confs else 0.0
        return Recognition(text=text, confidence=round(confidence, 1))


class EasyOCRExtractor:
    name = "easyocr"

    def __init__(self, languages: list[str] | None = None, gpu: bool = False):
        import easyocr
        self.reader = easyocr.Reader(languages or ["en"], gpu=gpu)

    def recognize(self, image: np.ndarray, region: Region) -> Recognition:
        crop = region.crop_from(image)
        if crop.size == 0:
            return Recognition()
        processed = _preprocess_for_ocr(crop)
        results = self.reader.readtext(processed)

        words = []
        for (bbox, text, conf) in results:
            if conf < MIN_WORD_CONFIDENCE / 100 or not text.strip():
                continue
            points = np.array(bbox)
            words.append((int(np.min(points[:, 1])), int(np.min(points[:, 0])), text.strip(), conf))
        if not words:
            return Recognition()

        words.sort(key=lambda w: (w[0], w[1]))
        text = " ".join(w[2] for w in words)
        confidence = float(np.mean([w[3] for w in words])) * 100
        return Recognition(text=text, confidence=round(confidence, 1))


_ENGINES = {
    TesseractExtractor.name: TesseractExtractor,
    EasyOCRExtractor.name: EasyOCRExtractor,
}


def get_extractor(engine: str = "tesseract") -> TextExtractor:
    if engine not in _ENGINES:
        raise ValueError(f"Unknown OCR engine: {engine}")
    return _ENGINES[engine]()


def extract_fragments(image: np.ndarray, regions: list[Region],
                      extractor: TextExtractor) -> list[RecognizedFragment]:
    """
    Run text recognition once per region.

    A region whose recognition raises or returns only whitespace is left out of
    the result; one bad region never stops the others.
    """
    fragments = []
    for i, region in enumerate(regions):
        try:
            result = extractor.recognize(image, region)
        except Exception as e:
            logger.warning(f"  OCR failed for region {i} ({region.x},{region.y} "
                           f"{region.width}x{region.height}): {e}")
            continue
        if result is None or result.is_empty:
            logger.debug(f"  Region {i}: no text")
            continue
        text = result.text.strip()
        fragments.append(RecognizedFragment(text=text, region=region, confidence=result.confidence))
        logger.debug(f"  Region {i}: '{text}' (conf={result.confidence})")

    logger.info(f"  Recognized text in {len(fragments)}/{len(regions)} regions")
    return fragments
