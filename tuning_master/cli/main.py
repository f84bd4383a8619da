"""Main entry point for the Tuning Master CLI."""

import sys
import time
from typing import Optional

import click

from ..logger import get_logger
from ..logging_config import setup_logging
from ..core.config import ConfigManager
from ..core.errors import TunerError
from ..core.events import TunerEventType
from ..core.factory import ComponentFactory
from ..core.presets import make_profile
from ..display import DisplayMode, mode_names
from ..ui.terminal import TerminalRenderer

logger = get_logger(__name__)


def _factory(ctx: click.Context) -> ComponentFactory:
    return ctx.obj["factory"]


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Also write log records to this file.")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory for settings and presets (default: ~/.config/tuning_master).",
)
@click.pass_context
def cli(ctx, debug, log_file, config_dir):
    """Tuning Master - chromatic, strobe and polyphonic instrument tuner."""
    setup_logging(level="DEBUG" if debug else None, log_file=log_file)
    ctx.ensure_object(dict)
    ctx.obj["factory"] = ComponentFactory(ConfigManager(config_dir))


@cli.command()
@click.option("--mode", type=click.Choice(mode_names()), default=None, help="Display mode.")
@click.option("--reference", type=float, default=None, help="Reference pitch for A4 in Hz.")
@click.option("--instrument", default=None, help="Instrument profile id.")
@click.option("--device", type=int, default=None, help="Audio input device ID.")
@click.option("--duration", "-t", type=float, default=None, help="Stop after this many seconds.")
@click.option("--big", is_flag=True, help="Print the note name in large letters when it changes.")
@click.pass_context
def listen(ctx, mode, reference, instrument, device, duration, big):
    """Tune live from the microphone (Ctrl+C to stop)."""
    factory = _factory(ctx)
    source = factory.create_audio_source("microphone", device_id=device)
    session = factory.create_session(
        audio_source=source, reference_pitch=reference, profile_id=instrument
    )

    renderer = TerminalRenderer(DisplayMode(mode or factory.settings.display_mode), big_note=big)
    session.events.on(TunerEventType.RESULT_UPDATED, renderer.on_result)

    click.echo(
        f"Listening: A4 = {session.reference_pitch:g} Hz, {session.profile}, "
        f"{renderer.mode.value} mode"
    )
    session.start()
    started = time.monotonic()
    try:
        while duration is None or time.monotonic() - started < duration:
            time.sleep(0.1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        session.stop()
        renderer.finish()


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--reference", type=float, default=None, help="Reference pitch for A4 in Hz.")
@click.option("--instrument", default=None, help="Instrument profile id.")
@click.option("--block-size", type=int, default=None, help="Samples per analysis block.")
@click.pass_context
def analyze(ctx, file, reference, instrument, block_size):
    """Print the detected note for every block of an audio FILE."""
    factory = _factory(ctx)
    source = factory.create_audio_source("file", file_path=file, block_size=block_size)
    session = factory.create_session(reference_pitch=reference, profile_id=instrument)
    session.start()

    seconds_per_block = source.block_size / source.sample_rate
    detections = 0
    try:
        for index, block in enumerate(source.blocks()):
            previous = session.result
            result = session.tick(block)
            if result is previous:
                continue
            detections += 1
            strings = " ".join(
                f"{s.note}:{s.cents:+.0f}" for s in session.string_results if s.active
            )
            click.echo(
                f"{index * seconds_per_block:7.2f}s  {str(result.note):<4} "
                f"{result.cents:+6.1f} cents  {result.frequency:8.2f} Hz  {strings}".rstrip()
            )
    finally:
        session.stop()

    click.echo(f"{detections} block(s) with a detected pitch")


@cli.command()
def devices():
    """List audio input devices and the sample rates they accept."""
    from ..audio.audio_input import list_input_devices, supported_sample_rates

    for device_id, device in list_input_devices():
        click.echo(f"{device_id}: {device['name']} (inputs: {device['max_input_channels']})")
        for rate, error in supported_sample_rates(device_id).items():
            status = "supported" if error is None else f"not supported ({error})"
            click.echo(f"    {rate} Hz: {status}")


@cli.group()
def presets():
    """Manage instrument profiles."""


@presets.command("list")
@click.pass_context
def presets_list(ctx):
    """List built-in and user-defined profiles."""
    factory = _factory(ctx)
    active = factory.settings.active_profile
    for profile in factory.presets.load():
        marker = "*" if profile.id == active else " "
        kind = "user" if profile.is_user_defined else "built-in"
        click.echo(f"{marker} {profile.id:<18} {kind:<8} {profile}")


@presets.command("add")
@click.argument("profile_id")
@click.argument("strings", nargs=-1, required=True)
@click.option("--name", default=None, help="Display name.")
@click.pass_context
def presets_add(ctx, profile_id, strings, name):
    """Add or replace a profile, e.g.: add open-g D2 G2 D3 G3 B3 D4"""
    profile = make_profile(profile_id, name or profile_id, strings)
    _factory(ctx).presets.add(profile)
    click.echo(f"Saved {profile}")


@presets.command("remove")
@click.argument("profile_id")
@click.pass_context
def presets_remove(ctx, profile_id):
    """Remove a user-defined profile."""
    if not _factory(ctx).presets.remove(profile_id):
        raise click.ClickException(f"No user-defined profile '{profile_id}'")
    click.echo(f"Removed {profile_id}")


@cli.group()
def config():
    """Show or change settings."""


@config.command("show")
@click.pass_context
def config_show(ctx):
    settings = _factory(ctx).settings
    click.echo(f"reference_pitch: {settings.reference_pitch:g}")
    click.echo(f"active_profile: {settings.active_profile}")
    click.echo(f"display_mode: {settings.display_mode}")
    for key, value in settings.audio_settings().items():
        click.echo(f"{key}: {value}")


@config.command("set-reference")
@click.argument("hertz", type=float)
@click.pass_context
def config_set_reference(ctx, hertz):
    pitch = _factory(ctx).settings.set_reference_pitch(hertz)
    click.echo(f"Reference pitch set to {pitch:g} Hz")


@config.command("set-instrument")
@click.argument("profile_id")
@click.pass_context
def config_set_instrument(ctx, profile_id):
    factory = _factory(ctx)
    profile = factory.resolve_profile(profile_id)
    factory.settings.set_active_profile(profile.id)
    click.echo(f"Active instrument: {profile}")


@config.command("set-mode")
@click.argument("mode", type=click.Choice(mode_names()))
@click.pass_context
def config_set_mode(ctx, mode):
    _factory(ctx).settings.set_display_mode(mode)
    click.echo(f"Display mode: {mode}")


def main(args: Optional[list] = None) -> int:
    """Run the CLI, turning tuner errors into a message and exit status 1."""
    try:
        cli.main(args=args, prog_name="tuning-master", standalone_mode=False)
    except TunerError as e:
        click.echo(f"Error: {e}", err=True)
        return 1
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
