"""Command-line interface for image-focus."""

import base64
import json
import logging
import sys
from pathlib import Path
from typing import Tuple

import click

from . import __version__
from .core.codec import decode, encode
from .core.focus import Fit, FocusDescriptor
from .core.placeholder import PlaceholderConfig, RasterCanvas, decode_hash, placeholder_size
from .core.shift import compute_shift
from .exceptions import FocusError
from .utils.image import describe_image

logger = logging.getLogger(__name__)

FIT_CHOICES = click.Choice([fit.value for fit in Fit], case_sensitive=False)


def parse_size(value: str) -> Tuple[float, float]:
    """Parse a ``WIDTHxHEIGHT`` string."""
    try:
        width, height = (float(part) for part in value.lower().split("x"))
    except ValueError:
        raise click.BadParameter(f"Expected WIDTHxHEIGHT, got {value!r}")
    if width <= 0 or height <= 0:
        raise click.BadParameter(f"Size must be positive, got {value!r}")
    return width, height


def _size_callback(ctx, param, value):
    return parse_size(value) if value is not None else None


def _fail(error: Exception, verbose: bool) -> None:
    click.echo(f"❌ Error: {error}", err=True)
    if verbose:
        import traceback

        traceback.print_exc()
    sys.exit(1)


def _describe(focus: FocusDescriptor) -> None:
    click.echo(f"   Focus: x={focus.x:+.2f} y={focus.y:+.2f}")
    if focus.has_dimensions:
        click.echo(f"   Size: {focus.width:g}x{focus.height:g}")
    else:
        click.echo("   Size: unknown")
    click.echo(f"   Fit: {focus.fit.value}")
    click.echo(f"   Blurhash: {focus.blurhash or '-'}")


@click.group()
@click.version_option(__version__, prog_name="image-focus")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Author and inspect image focal point descriptors.

    Examples:
        image-focus describe photo.jpg --x 0.28 --y -0.33
        image-focus decode WzEsMjgsLTMzLDI0MDAsMTQwMCwxLG51bGxd
        image-focus shift WzEsMjgsLTMzLDI0MDAsMTQwMCwxLG51bGxd --container 120x120
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@main.command("encode")
@click.option("--x", "x", default=0.0, type=click.FloatRange(-1.0, 1.0), help="Horizontal focus (default: 0)")
@click.option("--y", "y", default=0.0, type=click.FloatRange(-1.0, 1.0), help="Vertical focus, positive is up (default: 0)")
@click.option("--width", default=0, type=click.FloatRange(min=0), help="Intrinsic image width")
@click.option("--height", default=0, type=click.FloatRange(min=0), help="Intrinsic image height")
@click.option("--fit", default="cover", type=FIT_CHOICES, help="Fit mode (default: cover)")
@click.option("--blurhash", default=None, help="Placeholder blurhash")
@click.pass_context
def encode_command(ctx, x, y, width, height, fit, blurhash) -> None:
    """Encode a focus descriptor into an attribute token."""
    focus = FocusDescriptor(
        x=x, y=y, width=width, height=height, fit=Fit.parse(fit), blurhash=blurhash
    )
    click.echo(encode(focus))


@main.command("decode")
@click.argument("token")
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
@click.pass_context
def decode_command(ctx, token: str, as_json: bool) -> None:
    """Decode an attribute token."""
    try:
        focus = decode(token)
    except FocusError as e:
        _fail(e, ctx.obj["verbose"])
        return

    if as_json:
        click.echo(json.dumps(focus.to_dict()))
    else:
        click.echo("📍 Focus descriptor")
        _describe(focus)


@main.command("shift")
@click.argument("token")
@click.option(
    "--container",
    required=True,
    callback=_size_callback,
    help="Container size as WIDTHxHEIGHT",
)
@click.pass_context
def shift_command(ctx, token: str, container: Tuple[float, float]) -> None:
    """Print the crop position of a descriptor for a container size."""
    try:
        focus = decode(token)
    except FocusError as e:
        _fail(e, ctx.obj["verbose"])
        return

    shift = compute_shift(focus, *container)
    if shift is None:
        _fail(ValueError("Descriptor has no image dimensions"), ctx.obj["verbose"])
        return
    click.echo(shift.css())


@main.command("describe")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--x", "x", default=0.0, type=click.FloatRange(-1.0, 1.0), help="Horizontal focus (default: 0)")
@click.option("--y", "y", default=0.0, type=click.FloatRange(-1.0, 1.0), help="Vertical focus, positive is up (default: 0)")
@click.option("--fit", default="cover", type=FIT_CHOICES, help="Fit mode (default: cover)")
@click.option(
    "--components",
    default="4x3",
    help="Blurhash components as XxY (default: 4x3)",
)
@click.option("--no-hash", is_flag=True, help="Skip placeholder generation")
@click.pass_context
def describe_command(ctx, input_file: Path, x, y, fit, components: str, no_hash: bool) -> None:
    """Build a descriptor token for an image file."""
    verbose = ctx.obj["verbose"]
    try:
        comp_x, comp_y = (int(part) for part in components.lower().split("x"))
    except ValueError:
        raise click.BadParameter(f"Expected XxY, got {components!r}", param_hint="--components")

    try:
        focus = describe_image(
            input_file,
            x=x,
            y=y,
            fit=Fit.parse(fit),
            components=(comp_x, comp_y),
            with_hash=not no_hash,
        )
    except (ValueError, RuntimeError) as e:
        _fail(e, verbose)
        return

    if verbose:
        click.echo(f"🖼  {input_file}", err=True)
        click.echo(f"   Size: {focus.width:g}x{focus.height:g}", err=True)
        click.echo(f"   Blurhash: {focus.blurhash or '-'}", err=True)
    click.echo(encode(focus))


@main.command("placeholder")
@click.argument("token")
@click.option(
    "-o",
    "--output",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output image path",
)
@click.option("--punch", default=1.0, type=click.FloatRange(min=0.1), help="Contrast multiplier")
@click.pass_context
def placeholder_command(ctx, token: str, output: Path, punch: float) -> None:
    """Write the placeholder bitmap of a descriptor."""
    verbose = ctx.obj["verbose"]
    try:
        focus = decode(token)
        if not focus.blurhash or not focus.has_dimensions:
            raise ValueError("Descriptor needs a blurhash and image dimensions")

        image_format = {".png": "PNG", ".webp": "WEBP"}.get(output.suffix.lower(), "JPEG")
        config = PlaceholderConfig(image_format=image_format, punch=punch)
        width, height = placeholder_size(focus.width, focus.height, config.max_size)
        pixels = decode_hash(focus.blurhash, width, height, punch=config.punch)
        data_uri = RasterCanvas(config).to_data_uri(pixels)
    except (FocusError, ValueError) as e:
        _fail(e, verbose)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(base64.b64decode(data_uri.split(",", 1)[1]))
    click.echo(f"✅ Wrote {width}x{height} placeholder to {output}")


if __name__ == "__main__":
    main()
