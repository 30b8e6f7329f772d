"""Launch configurations for the development client and server."""

from __future__ import annotations

import logging
import platform
import shlex
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from moddev.runtime.context import BuildContext

logger = logging.getLogger("moddev.runtime.runconfig")

DEFAULT_MAIN_CLASS = "net.minecraft.launchwrapper.Launch"
PLACEHOLDER_TWEAKER = "PlaceholderTweaker"


@dataclass
class RunConfig:
    """Main class, working directory and arguments of one launch target."""

    config_name: str
    project_name: str
    main_class: str
    run_dir: str
    vm_args: str = ""
    program_args: str = ""

    def vm_argv(self) -> List[str]:
        return shlex.split(self.vm_args)

    def program_argv(self) -> List[str]:
        return shlex.split(self.program_args)


def _populate(
    context: BuildContext,
    config_name: str,
    mode: str,
    installer: Optional[Dict[str, Any]],
) -> RunConfig:
    """Fill in defaults, then overrides from the installer JSON.

    Installer values are looked up by side key: ``mode`` first, then
    ``common``.
    """
    run = RunConfig(
        config_name=config_name,
        project_name=context.project_name,
        main_class=DEFAULT_MAIN_CLASS,
        run_dir=str(context.run_dir),
        vm_args="-Dfabric.development=true",
    )
    if not installer:
        return run

    side_keys = (mode, "common")

    main_class = installer.get("mainClass")
    if isinstance(main_class, dict):
        for key in side_keys:
            if key in main_class:
                run.main_class = main_class[key]
                break
    elif isinstance(main_class, str):
        run.main_class = main_class

    tweakers = (installer.get("launchwrapper") or {}).get("tweakers") or {}
    for key in side_keys:
        for tweaker in tweakers.get(key, []):
            run.program_args += f" --tweakClass {tweaker}"

    return run


def client_run_config(
    context: BuildContext,
    asset_index_id: str,
    installer: Optional[Dict[str, Any]] = None,
    os_name: Optional[str] = None,
) -> RunConfig:
    """Development client launch configuration."""
    tweak_class = context.config.tweak_class
    if not tweak_class:
        logger.warning("No tweakClass provided, using a placeholder.")
        tweak_class = PLACEHOLDER_TWEAKER

    run = _populate(context, "Minecraft Client", "client", installer)
    run.program_args += (
        f' --assetIndex "{asset_index_id}" --tweakClass {tweak_class}'
        f' --accessToken "" --version {context.game_version}'
    )
    run.vm_args += os_client_jvm_args(os_name)
    return run


def server_run_config(
    context: BuildContext, installer: Optional[Dict[str, Any]] = None
) -> RunConfig:
    """Development server launch configuration."""
    return _populate(context, "Minecraft Server", "server", installer)


def os_client_jvm_args(os_name: Optional[str] = None) -> str:
    # LWJGL needs the main thread on macOS
    name = (os_name or platform.system()).lower()
    if name in ("darwin", "osx"):
        return " -XstartOnFirstThread"
    return ""


__all__ = [
    "RunConfig",
    "client_run_config",
    "server_run_config",
    "os_client_jvm_args",
]
