"""Command-line interface for the card scanner."""

import time
from pathlib import Path

import cv2
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .capture.camera import CameraCapture
from .capture.overlay import camera_overlay
from .capture.warp import RectangleDetector, perspective_corrector
from .core.types import Frame, PixelFormat, ScanResult
from .ocr.extract import RecognitionLevel, TesseractTextRecognizer, extract_scan_result
from .pipeline.scanner import FrameOutcome, ScanPipeline
from .ui.notifier import WindowPresenter
from .utils.config import settings
from .utils.error_handler import CaptureError
from .utils.log import configure_logging, get_logger

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Rich console
console = Console()

app = typer.Typer(
    name="cardscan",
    help="Payment card scanner - reads card number and expiry date from a camera feed",
    add_completion=False
)

WINDOW_TITLE = "Card Scanner - SPACE to dismiss, ESC to exit"
KEY_ESC, KEY_ENTER, KEY_SPACE = 27, 13, 32


def build_detector() -> RectangleDetector:
    return RectangleDetector(
        min_aspect_ratio=settings.MIN_ASPECT_RATIO,
        max_aspect_ratio=settings.MAX_ASPECT_RATIO,
        min_size=settings.MIN_RELATIVE_SIZE,
    )


def print_result(result: ScanResult) -> None:
    """Render a scan result as a rich table."""
    table = Table(title="Detected data", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value", style="green")
    table.add_row("Card Number", result.card_number or "-")
    table.add_row("Expiry Date", result.expiry_date or "-")
    if result.card_holder:
        table.add_row("Card Holder", result.card_holder)
    console.print(table)


CONFIDENCE_HELP = (
    "Minimum line confidence (0-1) for classification. Tesseract rarely reports "
    "a full 1.0, so lower this (e.g. 0.9) if cards are never recognized"
)


def scan_image(data, recognizer: TesseractTextRecognizer, min_confidence: float, detect: bool) -> ScanResult:
    """Run one still image through detection (optional), rectification and recognition."""
    if not detect:
        return extract_scan_result(recognizer.recognize(data), min_confidence)

    presenter = WindowPresenter()
    with ScanPipeline(
        detector=build_detector(),
        rectifier=perspective_corrector,
        recognizer=recognizer,
        presenter=presenter,
        min_confidence=min_confidence,
        release_on_acknowledge=False,
    ) as pipeline:
        outcome = pipeline.process_frame(Frame(data, PixelFormat.BGR))
        pipeline.wait_for_recognition()

    if outcome is FrameOutcome.NO_CANDIDATE:
        console.print("[yellow]⚠ No card detected in image[/yellow]")
        raise typer.Exit(1)
    if outcome is not FrameOutcome.SUBMITTED:
        console.print(f"[red]❌ Card could not be processed ({outcome.value})[/red]")
        raise typer.Exit(1)
    _, result = presenter.snapshot()
    return result or ScanResult()


@app.command()
def run(
    camera_index: int = typer.Option(settings.CAMERA_INDEX, "--camera", help="Camera device index"),
    recognition_level: RecognitionLevel = typer.Option(
        RecognitionLevel(settings.RECOGNITION_LEVEL), "--level", "-l", help="Text recognition level"
    ),
    min_confidence: float = typer.Option(
        settings.TEXT_CONFIDENCE_THRESHOLD, "--confidence", "-c",
        min=0.0, max=1.0, help=CONFIDENCE_HELP
    ),
    release_on_acknowledge: bool = typer.Option(
        settings.RELEASE_GATE_ON_ACKNOWLEDGE, "--wait-for-dismiss/--no-wait-for-dismiss",
        help="Keep recognition paused until a result is dismissed"
    ),
):
    """Scan the live camera feed until ESC is pressed."""
    console.print(Panel.fit(
        "[bold blue]Card Scanner[/bold blue]\n"
        "[dim]detect → rectify → recognize → classify[/dim]",
        border_style="blue"
    ))

    camera = CameraCapture(camera_index)
    try:
        camera.initialize()
    except CaptureError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        logger.error("Camera unavailable", **e.details)
        raise typer.Exit(1)

    try:
        presenter = WindowPresenter(on_result=print_result)
        pipeline = ScanPipeline(
            detector=build_detector(),
            rectifier=perspective_corrector,
            recognizer=TesseractTextRecognizer(recognition_level),
            presenter=presenter,
            min_confidence=min_confidence,
            release_on_acknowledge=release_on_acknowledge,
        )

        console.print("• Hold a card in front of the camera")
        console.print("• Press [bold]SPACE[/bold] to dismiss a result, [bold]ESC[/bold] to exit")

        with pipeline:
            while True:
                frame = camera.read_frame()
                if frame is None:
                    console.print("[yellow]⚠ No camera frame available[/yellow]")
                    time.sleep(0.1)
                    continue

                pipeline.process_frame(frame)

                overlay_rect, result = presenter.snapshot()
                preview = camera_overlay.render(frame.data, overlay_rect, result)
                cv2.imshow(WINDOW_TITLE, preview)

                key = cv2.waitKey(1) & 0xFF
                if key == KEY_ESC:
                    break
                if key in (KEY_SPACE, KEY_ENTER):
                    presenter.acknowledge_pending()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
    except Exception as e:
        console.print(f"\n[red]❌ Error during scanning: {e}[/red]")
        logger.error("Scanning error", error=str(e), error_type=type(e).__name__)
        raise typer.Exit(1)
    finally:
        camera.release()
        cv2.destroyAllWindows()

    console.print("[green]✓ Scanner stopped[/green]")


@app.command()
def image(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Image file to scan"),
    recognition_level: RecognitionLevel = typer.Option(
        RecognitionLevel(settings.RECOGNITION_LEVEL), "--level", "-l", help="Text recognition level"
    ),
    min_confidence: float = typer.Option(
        settings.TEXT_CONFIDENCE_THRESHOLD, "--confidence", "-c",
        min=0.0, max=1.0, help=CONFIDENCE_HELP
    ),
    detect: bool = typer.Option(
        True, "--detect/--no-detect", help="Locate the card first; --no-detect reads the whole image"
    ),
):
    """Scan a single still image."""
    data = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if data is None:
        console.print(f"[red]❌ Cannot read image: {path}[/red]")
        raise typer.Exit(1)

    try:
        recognizer = TesseractTextRecognizer(recognition_level)
        result = scan_image(data, recognizer, min_confidence, detect)
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]❌ Error scanning image: {e}[/red]")
        logger.error("Image scan error", path=str(path), error=str(e), error_type=type(e).__name__)
        raise typer.Exit(1)

    if not result.is_complete:
        console.print("[yellow]⚠ No complete card data found[/yellow]")
        raise typer.Exit(1)

    print_result(result)
