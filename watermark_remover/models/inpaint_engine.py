# models/inpaint_engine.py
"""
Process-wide handle on the optional OpenCV inpainting capability.

• Probed once per Python process, result cached (engine or None).
• probe() never raises; a broken or missing OpenCV simply means None.
• .inpaint(rgba, mask, radius) → new RGBA array, Telea propagation.
"""
from __future__ import annotations
import logging
import os

import numpy as np
from dotenv import load_dotenv

from ..exceptions import CapabilityUnavailableError

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class InpaintEngine:
    _instance: "InpaintEngine" | None = None
    _probed: bool = False

    def __init__(self, cv2_module) -> None:
        self._cv2 = cv2_module
        self._flag = cv2_module.INPAINT_TELEA

    # --------------------------------------------------
    @classmethod
    def probe(cls) -> "InpaintEngine" | None:
        """Resolve the capability once; later calls return the cached answer."""
        if cls._probed:
            return cls._instance
        cls._probed = True

        if os.getenv("INPAINT_ENGINE", "auto").lower() == "native":
            logger.info("INPAINT_ENGINE=native, professional inpainting disabled")
            return None

        try:
            import cv2

            engine = cls(cv2)
            # Tiny smoke call: some headless builds import fine but lack the photo module.
            probe_img = np.zeros((4, 4, 4), dtype=np.uint8)
            probe_mask = np.zeros((4, 4), dtype=bool)
            probe_mask[1:3, 1:3] = True
            engine.inpaint(probe_img, probe_mask, 1)
        except Exception as err:
            logger.info(f"OpenCV inpainting unavailable, using native diffusion: {err}")
            return None

        cls._instance = engine
        logger.info(f"OpenCV {getattr(cv2, '__version__', '?')} inpainting available (Telea)")
        return engine

    @classmethod
    def reset_probe(cls) -> None:
        """Forget the cached probe result (tests, env changes)."""
        cls._instance = None
        cls._probed = False

    # --------------------------------------------------
    def inpaint(self, rgba: np.ndarray, mask: np.ndarray, radius: int) -> np.ndarray:
        """
        Args
        ----
        rgba   : np.ndarray  (h, w, 4)  uint8
        mask   : np.ndarray  (h, w)     bool, True = reconstruct
        radius : int                    Telea neighbourhood in px

        Returns
        -------
        out : np.ndarray  (h, w, 4)  uint8, masked pixels made opaque
        """
        if self._cv2 is None:
            raise CapabilityUnavailableError("OpenCV module missing")
        rgb = np.ascontiguousarray(rgba[..., :3])
        mask_u8 = mask.astype(np.uint8) * 255
        filled = self._cv2.inpaint(rgb, mask_u8, float(radius), self._flag)

        out = rgba.copy()
        out[..., :3] = filled
        out[mask, 3] = 255
        return out
