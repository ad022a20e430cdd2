# qt_frames.py
from __future__ import annotations
from typing import Iterable, Iterator, Optional
import numpy as np
from PySide6.QtGui import QImage

# canales -> formato de QImage
_QIMAGE_FORMATS = {
    1: QImage.Format_Grayscale8,
    3: QImage.Format_RGB888,
    4: QImage.Format_RGBA8888,
}


def qimage_to_numpy(image: QImage) -> np.ndarray:
    """QImage -> numpy (RGBA8), copia propia."""
    image = image.convertToFormat(QImage.Format_RGBA8888)
    w, h = image.width(), image.height()
    bpl = image.bytesPerLine()
    buf = np.frombuffer(image.constBits(), dtype=np.uint8, count=image.sizeInBytes())
    # cada línea puede traer relleno al final
    arr = buf.reshape(h, bpl)[:, : w * 4].reshape(h, w, 4)
    return arr.copy()


def qimage_to_frame(image: QImage) -> np.ndarray:
    """QImage -> frame RGB uint8 listo para el buscador de contornos."""
    return np.ascontiguousarray(qimage_to_numpy(image)[..., :3])


def numpy_to_qimage(frame: np.ndarray) -> QImage:
    """Frame uint8 (H, W), (H, W, 1), (H, W, 3) o (H, W, 4) -> QImage propia."""
    frame = np.ascontiguousarray(frame)
    if frame.dtype != np.uint8:
        raise ValueError(f"Se esperaba un frame uint8, no {frame.dtype}")
    if frame.ndim == 3 and frame.shape[2] == 1:
        frame = np.ascontiguousarray(frame[..., 0])
    channels = 1 if frame.ndim == 2 else (frame.shape[2] if frame.ndim == 3 else 0)
    fmt = _QIMAGE_FORMATS.get(channels)
    if fmt is None:
        raise ValueError(f"Forma de frame no soportada para QImage: {frame.shape}")
    h, w = frame.shape[:2]
    return QImage(frame.data, w, h, frame.strides[0], fmt).copy()


class QImageFrameSource:
    """
    Fuente de frames sobre una secuencia de QImage (p.ej. capturas de un widget).
    Una QImage nula marca el fin del stream, igual que agotar la secuencia.
    """

    def __init__(self, images: Iterable[QImage]) -> None:
        self._it: Iterator[QImage] = iter(images)

    def read(self) -> Optional[np.ndarray]:
        image = next(self._it, None)
        if image is None or image.isNull():
            return None
        return qimage_to_frame(image)
