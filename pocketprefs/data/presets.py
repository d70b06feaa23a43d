"""Built-in app presets and the combined app list shown to the user."""

from __future__ import annotations

from dataclasses import replace
from uuid import NAMESPACE_DNS, uuid5

from pocketprefs.core.install_checker import InstallChecker
from pocketprefs.data.registry import CustomAppRegistry
from pocketprefs.models.app_config import AppCategory, AppConfigEntry


def _preset(name: str, bundle_id: str, paths: list[str], category: AppCategory) -> AppConfigEntry:
    # Presets get a fixed id so selections survive restarts
    return AppConfigEntry(
        name=name,
        bundle_id=bundle_id,
        config_paths=paths,
        id=uuid5(NAMESPACE_DNS, f"preset.{bundle_id}"),
        category=category,
    )


PRESET_APPS: tuple[AppConfigEntry, ...] = (
    # Development
    _preset(
        "Visual Studio Code",
        "com.microsoft.VSCode",
        ["~/Library/Application Support/Code", "~/.vscode"],
        AppCategory.DEVELOPMENT,
    ),
    _preset(
        "Xcode",
        "com.apple.dt.Xcode",
        [
            "~/Library/Developer/Xcode/UserData",
            "~/Library/Preferences/com.apple.dt.Xcode.plist",
        ],
        AppCategory.DEVELOPMENT,
    ),
    _preset(
        "Kaleidoscope",
        "com.blackpixel.kaleidoscope",
        [
            "~/Library/Application Support/Kaleidoscope",
            "~/Library/Preferences/com.blackpixel.kaleidoscope.plist",
        ],
        AppCategory.DEVELOPMENT,
    ),
    # Terminal
    _preset(
        "iTerm2",
        "com.googlecode.iterm2",
        [
            "~/Library/Preferences/com.googlecode.iterm2.plist",
            "~/Library/Application Support/iTerm2",
        ],
        AppCategory.TERMINAL,
    ),
    _preset("Oh My Zsh", "oh-my-zsh", ["~/.zshrc", "~/.oh-my-zsh/custom"], AppCategory.TERMINAL),
    _preset("Git", "git", ["~/.gitconfig", "~/.gitignore_global"], AppCategory.TERMINAL),
    _preset("SSH", "ssh", ["~/.ssh/config"], AppCategory.TERMINAL),
    _preset("Homebrew", "homebrew", ["~/.Brewfile", "/usr/local/etc"], AppCategory.TERMINAL),
    # Productivity
    _preset(
        "Transmit",
        "com.panic.Transmit",
        [
            "~/Library/Application Support/Transmit",
            "~/Library/Preferences/com.panic.Transmit.plist",
        ],
        AppCategory.PRODUCTIVITY,
    ),
    # Design
    _preset(
        "Pixelmator Pro",
        "com.pixelmatorteam.pixelmator.x",
        [
            "~/Library/Application Support/Pixelmator Pro",
            "~/Library/Preferences/com.pixelmatorteam.pixelmator.x.plist",
        ],
        AppCategory.GRAPHICS_DESIGN,
    ),
)


def build_app_list(registry: CustomAppRegistry, checker: InstallChecker) -> list[AppConfigEntry]:
    """Presets followed by custom apps, with ``is_installed`` filled in."""
    return [
        replace(app, is_installed=checker.is_installed(app.bundle_id))
        for app in (*PRESET_APPS, *registry.custom_apps)
    ]
