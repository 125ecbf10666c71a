"""
Frame-by-frame box overlay viewer.

Runs the FrameProcessor over a JSON frame list and shows the annotated image
and the occupancy mask side by side in OpenCV windows. Press any key for the
next frame, the quit key (default 'q') to stop. With --headless, frames are
processed without windows and per-frame counts are logged.

Usage:
    # Interactive, default config
    box-overlay --frames json.json --image-root /data/drive01

    # Headless sweep over the first 500 frames
    box-overlay --frames json.json --image-root /data/drive01 --headless --max-frames 500
"""

import argparse
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import cv2
import yaml
from tqdm import tqdm

from ..data.frame_loader import FrameLoader
from ..pipeline.filters import keep_all
from ..pipeline.frame_processor import FrameProcessor, FrameResult
from ..utils.config_loader import load_config
from ..utils.errors import InvalidImageError, ParseError
from ..utils.logger import LoggerMixin, setup_logger
from .box_overlay import overlay_mask


@dataclass(frozen=True)
class DisplayConfig:
    """
    Window and keyboard settings.

    Attributes:
        image_window: Window title for the annotated image.
        mask_window: Window title for the mask.
        wait_ms: cv2.waitKey delay; 0 blocks until a key is pressed.
        quit_key: Key that ends the run.
        mask_overlay: Blend the mask over the annotated image.
    """
    image_window: str = "img"
    mask_window: str = "mask"
    wait_ms: int = 0
    quit_key: str = "q"
    mask_overlay: bool = False

    def __post_init__(self):
        if len(self.quit_key) != 1:
            raise ValueError(f"quit_key must be a single character, got {self.quit_key!r}")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "DisplayConfig":
        """Build from the ``display`` section of the YAML config."""
        defaults = cls()
        return cls(
            image_window=str(config.get("image_window", defaults.image_window)),
            mask_window=str(config.get("mask_window", defaults.mask_window)),
            wait_ms=int(config.get("wait_ms", defaults.wait_ms)),
            quit_key=str(config.get("quit_key", defaults.quit_key)),
            mask_overlay=bool(config.get("mask_overlay", defaults.mask_overlay)),
        )


class Visualizer(LoggerMixin):
    """Drive the frame loop: load, process, display, advance."""

    def __init__(
        self,
        processor: FrameProcessor,
        loader: FrameLoader,
        display: Optional[DisplayConfig] = None,
        headless: bool = False,
    ):
        """
        Initialize the visualizer.

        Args:
            processor: Per-frame pipeline.
            loader: Frame list and image source.
            display: Window and keyboard settings.
            headless: Process without opening windows.
        """
        self.processor = processor
        self.loader = loader
        self.display = display or DisplayConfig()
        self.headless = headless

    def process_frame(self, index: int) -> FrameResult:
        """
        Load and process one frame.

        Raises:
            InvalidImageError: If the image cannot be loaded or is empty.
        """
        frame = self.loader[index]
        image = self.loader.load_image(frame)
        return self.processor.process(frame.objects, image)

    def show(self, result: FrameResult) -> bool:
        """
        Display one result and wait for a key.

        Returns:
            False if the quit key was pressed.
        """
        image = result.image
        if self.display.mask_overlay:
            image = overlay_mask(image, result.mask)

        cv2.imshow(self.display.image_window, image)
        cv2.imshow(self.display.mask_window, result.mask)

        key = cv2.waitKey(self.display.wait_ms) & 0xFF
        return key != ord(self.display.quit_key)

    def run(self, start: int = 0, max_frames: Optional[int] = None) -> int:
        """
        Process frames from ``start`` until the list ends, ``max_frames``
        have been visited or the user quits.

        Frames whose image is missing or empty are logged and skipped.

        Args:
            start: First frame index.
            max_frames: Upper bound on frames visited (None for all).

        Returns:
            Number of frames processed successfully.

        Raises:
            ValueError: If ``start`` is negative.
        """
        if start < 0:
            raise ValueError(f"start must be non-negative, got {start}")

        end = len(self.loader)
        if max_frames is not None:
            end = min(end, start + max_frames)

        frame_indices: List[int] = list(range(start, end))
        self.logger.info(f"Processing {len(frame_indices)} frames ({start} to {end - 1})")

        iterator = tqdm(frame_indices, desc="Frames", unit="frame") if self.headless else frame_indices

        processed = 0
        try:
            for index in iterator:
                try:
                    result = self.process_frame(index)
                except InvalidImageError as e:
                    self.logger.warning(f"Skipping frame {index}: {e}")
                    continue

                processed += 1

                if self.headless:
                    self.logger.debug(f"Frame {index}: {result.to_dict()}")
                    continue

                self.logger.info(
                    f"Frame {index} ({self.loader[index].image_file}): "
                    f"{result.num_visible} boxes"
                )
                if not self.show(result):
                    self.logger.info("Quit requested")
                    break
        finally:
            if not self.headless:
                cv2.destroyAllWindows()

        self.logger.info(f"Done: {processed} frames processed")
        return processed


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {number}")
    return number


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Overlay tracked 3D boxes on camera images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file (default: built-in defaults)",
    )
    parser.add_argument(
        "--frames",
        type=str,
        default=None,
        help="JSON frame list (overrides data.frames_file)",
    )
    parser.add_argument(
        "--image-root",
        type=str,
        default=None,
        help="Directory image paths are relative to (overrides data.image_root)",
    )
    parser.add_argument(
        "--start",
        type=_non_negative_int,
        default=0,
        help="Starting frame index (default: 0)",
    )
    parser.add_argument(
        "--max-frames",
        type=_non_negative_int,
        default=None,
        help="Maximum number of frames to visit (default: all)",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Process without display windows",
    )
    parser.add_argument(
        "--no-filter",
        action="store_true",
        help="Disable the class and spatial record gate",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override logging level",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    overrides: Dict[str, Any] = {"data": {}, "logging": {}}
    if args.frames:
        overrides["data"]["frames_file"] = args.frames
    if args.image_root:
        overrides["data"]["image_root"] = args.image_root
    if args.log_level:
        overrides["logging"]["level"] = args.log_level

    try:
        config = load_config(args.config, overrides)
        display = DisplayConfig.from_config(config["display"])
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        setup_logger(level=args.log_level or "INFO").error(f"Cannot load config: {e}")
        return 1

    logger = setup_logger(
        level=config["logging"]["level"],
        log_file=config["logging"]["log_file"],
    )

    try:
        loader = FrameLoader(
            config["data"]["frames_file"],
            image_root=config["data"]["image_root"],
        )
    except (FileNotFoundError, ParseError) as e:
        logger.error(f"Cannot load frame list: {e}")
        return 1

    processor = FrameProcessor.from_config(config)
    if args.no_filter:
        processor.record_filter = keep_all
    logger.info(f"Record gate: {processor.record_filter!r}")

    visualizer = Visualizer(
        processor,
        loader,
        display=display,
        headless=args.headless,
    )
    visualizer.run(start=args.start, max_frames=args.max_frames)

    return 0
