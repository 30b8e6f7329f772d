"""Tests for launch configurations and project setup."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from moddev.config.schema import EnvironmentConfig
from moddev.graph.configurations import DependencyNotation
from moddev.graph.scanner import DependencyResultNode, ScopeLevel
from moddev.runtime.context import BuildContext, configure_project, mixin_compiler_args
from moddev.runtime.runconfig import (
    DEFAULT_MAIN_CLASS,
    client_run_config,
    os_client_jvm_args,
    server_run_config,
)

INSTALLER = {
    "mainClass": {
        "client": "net.fabricmc.loader.launch.knot.KnotClient",
        "server": "net.fabricmc.loader.launch.knot.KnotServer",
    },
    "launchwrapper": {
        "tweakers": {
            "client": ["net.fabricmc.loader.launch.FabricClientTweaker"],
            "common": ["org.spongepowered.asm.launch.MixinTweaker"],
        }
    },
}


def _context(tmp_path: Path, tweak_class: str = "") -> BuildContext:
    return BuildContext(
        project_name="example-mod",
        project_dir=tmp_path,
        config=EnvironmentConfig(tweak_class=tweak_class),
        game_version="1.14.4",
    )


def test_client_run_config_from_installer(tmp_path: Path) -> None:
    run = client_run_config(
        _context(tmp_path, "net.example.Tweaker"), "1.14-1.14.4", INSTALLER, os_name="Linux"
    )

    assert run.main_class == "net.fabricmc.loader.launch.knot.KnotClient"
    assert run.program_argv() == [
        "--tweakClass",
        "net.fabricmc.loader.launch.FabricClientTweaker",
        "--tweakClass",
        "org.spongepowered.asm.launch.MixinTweaker",
        "--assetIndex",
        "1.14-1.14.4",
        "--tweakClass",
        "net.example.Tweaker",
        "--accessToken",
        "",
        "--version",
        "1.14.4",
    ]
    assert run.vm_argv() == ["-Dfabric.development=true"]
    assert run.run_dir == str(tmp_path / "run")


def test_client_placeholder_tweaker_and_macos(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="moddev.runtime.runconfig"):
        run = client_run_config(_context(tmp_path), "1.14", None, os_name="Darwin")

    assert "placeholder" in caplog.text
    assert run.main_class == DEFAULT_MAIN_CLASS
    assert "-XstartOnFirstThread" in run.vm_argv()


def test_server_run_config(tmp_path: Path) -> None:
    run = server_run_config(_context(tmp_path), {"mainClass": "net.example.Server"})

    assert run.config_name == "Minecraft Server"
    assert run.main_class == "net.example.Server"
    assert run.program_args == ""


def test_os_client_jvm_args() -> None:
    assert os_client_jvm_args("osx") == " -XstartOnFirstThread"
    assert os_client_jvm_args("Windows") == ""


def test_configure_project_injects_extension(tmp_path: Path) -> None:
    ext = DependencyNotation("net.fabricmc", "fabric-mixin-compile-extensions", "0.1.0")
    context = _context(tmp_path)
    context.scopes = [
        ScopeLevel("example-mod", []),
        ScopeLevel("root", [DependencyResultNode(identity=ext)]),
    ]

    configure_project(context)

    assert context.mixin_extension_found is True
    assert ext in context.graph.get("annotationProcessor").dependencies
    assert "modCompileMapped" in context.graph.parents("compile")


def test_configure_project_without_extension(tmp_path: Path) -> None:
    context = configure_project(_context(tmp_path))

    assert context.mixin_extension_found is False
    assert context.graph.get("annotationProcessor").dependencies == []


def test_mixin_compiler_args(tmp_path: Path) -> None:
    args = mixin_compiler_args(
        tmp_path / "mappings.tiny", tmp_path / "mixin.tiny", tmp_path / "classes", "example.refmap.json"
    )

    assert args[0] == f"-AinMapFileNamedOfficial={(tmp_path / 'mappings.tiny').resolve()}"
    assert args[2].endswith("example.refmap.json")
    assert args[-1] == "-AdefaultObfuscationEnv=named:official"
