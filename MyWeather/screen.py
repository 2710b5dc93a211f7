"""Screen abstraction - allows swapping the console UI with test and image backends."""
import logging
import sys
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence, TextIO, Tuple, Union

from PIL import Image, ImageDraw, ImageFont

from layout import DisplayFields

ACTION_LOCATION_SOURCE_SETTINGS = "location_source_settings"
ACTION_APPLICATION_DETAILS_SETTINGS = "application_details_settings"

MENU_REFRESH = "refresh"
MENU_QUIT = "quit"

# Tried in order for snapshots before falling back to Pillow's default
SNAPSHOT_FONTS = ("DejaVuSans.ttf", "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf")

# (label, DisplayFields attribute) in on-screen order
FIELD_ROWS: Sequence[Tuple[str, str]] = (
    ("City", "city_name"),
    ("Weather", "weather_desc"),
    ("Icon", "weather_icon"),
    ("Temperature", "current_temp"),
    ("", "feels_like"),
    ("Min", "min_temp"),
    ("Max", "max_temp"),
    ("Sunrise", "sunrise_time"),
    ("Sunset", "sunset_time"),
    ("Wind", "wind_speed"),
    ("Direction", "wind_dir"),
    ("Pressure", "pressure"),
    ("Humidity", "humidity"),
)


def field_lines(fields: DisplayFields) -> List[str]:
    """One "Label: value" line per populated field."""
    lines = []
    for label, attr in FIELD_ROWS:
        value = getattr(fields, attr)
        if not value:
            continue
        value = value.replace("\n", " ")
        lines.append(f"{label}: {value}" if label else value)
    return lines


class ProgressIndicator:
    """Indeterminate "loading" indicator; shown when created by a screen."""

    def __init__(self):
        self.showing = False

    def show(self) -> None:
        self.showing = True

    def hide(self) -> None:
        self.showing = False


class WeatherScreen(ABC):
    """The single weather screen: display fields, notices, dialogs and progress."""

    def __init__(self):
        self.fields = DisplayFields()
        self.icon_path: Optional[str] = None
        self.content_visible = False
        self.progress_indicators: List[ProgressIndicator] = []

    def set_fields(self, fields: DisplayFields, icon_path: Optional[str] = None) -> None:
        self.fields = fields
        self.icon_path = icon_path
        self.redraw()

    def set_content_visible(self, visible: bool) -> None:
        self.content_visible = visible

    def show_progress(self) -> ProgressIndicator:
        """Create and show a new indicator. Earlier indicators are left alone."""
        indicator = ProgressIndicator()
        indicator.show()
        self.progress_indicators.append(indicator)
        logging.debug(f"Progress indicator shown ({self.visible_progress_count} visible)")
        return indicator

    @property
    def visible_progress_count(self) -> int:
        return sum(1 for p in self.progress_indicators if p.showing)

    @abstractmethod
    def redraw(self) -> None:
        """Draw the current fields."""
        pass

    @abstractmethod
    def show_notice(self, message: str) -> None:
        """Show a short transient message."""
        pass

    @abstractmethod
    def confirm(self, title: str, message: str, positive: str = "Ok", negative: str = "Cancel") -> bool:
        """
        Show a blocking dialog.

        Returns:
            True if the positive action was chosen
        """
        pass

    @abstractmethod
    def open_settings(self, action: str, package: Optional[str] = None) -> None:
        """Send the user to a system settings screen."""
        pass


class ConsoleScreen(WeatherScreen):
    """Interactive terminal screen."""

    SETTINGS_HINTS = {
        ACTION_LOCATION_SOURCE_SETTINGS:
            "Set WEATHER_LAT/WEATHER_LON or WEATHER_NETWORK_LOCATION=1 in your .env to enable location.",
        ACTION_APPLICATION_DETAILS_SETTINGS:
            "Re-run with --grant-location to allow {package} to use your location.",
    }

    def __init__(
        self,
        output: Optional[TextIO] = None,
        input_func: Callable[[str], str] = input,
        assume_yes: bool = False,
        snapshot_path: Optional[str] = None
    ):
        super().__init__()
        self.output = output if output is not None else sys.stdout
        self.input_func = input_func
        self.assume_yes = assume_yes
        self.snapshot_path = snapshot_path

    def _print(self, text: str = "") -> None:
        print(text, file=self.output)

    def redraw(self) -> None:
        self._print("=" * 32)
        for line in field_lines(self.fields):
            self._print(line)
        self._print("=" * 32)
        if self.snapshot_path:
            try:
                save_snapshot(self.fields, self.snapshot_path, icon_path=self.icon_path)
            except (OSError, UnicodeError) as e:
                logging.warning(f"Could not save screen snapshot: {e}")

    def show_progress(self) -> ProgressIndicator:
        self._print("Loading weather...")
        return super().show_progress()

    def show_notice(self, message: str) -> None:
        logging.info(f"Notice: {message}")
        self._print(f"» {message}")

    def confirm(self, title: str, message: str, positive: str = "Ok", negative: str = "Cancel") -> bool:
        self._print(f"[{title}]")
        self._print(message)
        if self.assume_yes:
            self._print(f"-> {positive}")
            return True
        try:
            answer = self.input_func(f"{positive} (y) / {negative} (n)? ")
        except EOFError:
            return False
        return answer.strip().lower() in ("y", "yes", positive.lower())

    def open_settings(self, action: str, package: Optional[str] = None) -> None:
        hint = self.SETTINGS_HINTS.get(action, f"Open settings: {action}")
        self._print(hint.format(package=package or "this app"))

    def read_menu_action(self) -> Optional[str]:
        """Prompt for the next menu action; None for unrecognised input."""
        try:
            answer = self.input_func("[r]efresh, [q]uit > ").strip().lower()
        except EOFError:
            return MENU_QUIT
        if answer in ("r", MENU_REFRESH):
            return MENU_REFRESH
        if answer in ("q", MENU_QUIT):
            return MENU_QUIT
        return None


class FakeScreen(WeatherScreen):
    """
    In-memory screen for tests - records everything shown to the user.

    Dialog answers come from confirm_answers: a single bool for every
    dialog, or a list consumed in order (defaulting to False once empty).
    """

    def __init__(self, confirm_answers: Union[bool, List[bool]] = True):
        super().__init__()
        self.confirm_answers = confirm_answers
        self.notices: List[str] = []
        self.dialogs: List[str] = []
        self.settings_opened: List[Tuple[str, Optional[str]]] = []
        self.redraw_count = 0

    def redraw(self) -> None:
        self.redraw_count += 1

    def show_notice(self, message: str) -> None:
        self.notices.append(message)

    def confirm(self, title: str, message: str, positive: str = "Ok", negative: str = "Cancel") -> bool:
        self.dialogs.append(title)
        if isinstance(self.confirm_answers, list):
            return self.confirm_answers.pop(0) if self.confirm_answers else False
        return self.confirm_answers

    def open_settings(self, action: str, package: Optional[str] = None) -> None:
        self.settings_opened.append((action, package))


def _load_font() -> Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]:
    """A TrueType font when one is installed, otherwise Pillow's built-in font."""
    for name in SNAPSHOT_FONTS:
        try:
            return ImageFont.truetype(name, 12)
        except OSError:
            continue
    return ImageFont.load_default()


def _drawable_text(line: str, font) -> str:
    line = line.replace("℃", "°C")
    if isinstance(font, ImageFont.FreeTypeFont):
        return line
    # The bitmap font only covers Latin-1
    return line.encode("latin-1", "replace").decode("latin-1")


def save_snapshot(
    fields: DisplayFields,
    filename: str,
    icon_path: Optional[str] = None,
    width: int = 240,
    height: int = 320,
    scale: int = 2
) -> Image.Image:
    """
    Render the display fields to a PNG image (scaled up for viewing).

    Args:
        fields: Fields to draw
        filename: Output filename (e.g., "weather.png")
        icon_path: Optional icon image drawn in the top-right corner
        width: Logical screen width in pixels
        height: Logical screen height in pixels
        scale: Scale factor for the saved image

    Returns:
        The unscaled PIL image
    """
    image = Image.new("RGB", (width, height), (20, 30, 60))
    draw = ImageDraw.Draw(image)
    font = _load_font()

    if icon_path:
        try:
            with Image.open(icon_path) as icon:
                icon = icon.convert("RGBA").resize((48, 48))
                image.paste(icon, (width - 56, 8), icon)
        except OSError as e:
            logging.warning(f"Could not load icon {icon_path}: {e}")

    y = 8
    for line in field_lines(fields):
        draw.text((8, y), _drawable_text(line, font), fill=(235, 235, 235), font=font)
        y += 18

    if scale > 1:
        scaled = image.resize((width * scale, height * scale), Image.NEAREST)
        scaled.save(filename)
    else:
        image.save(filename)
    logging.debug(f"Saved screen snapshot to {filename}")
    return image
