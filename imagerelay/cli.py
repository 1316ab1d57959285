import logging
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .bridge import AspectRatio, FormController, ReferenceImage, get_generator
from .bridge.clients import PROVIDERS
from .bridge.errors import ImageRelayError
from .storage import ArtifactStore

app = typer.Typer(name="imagerelay", help="Prompt-to-image relay and client.")
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")):
    level = "DEBUG" if verbose else os.getenv("LOG_LEVEL", "WARNING")
    logging.basicConfig(level=level.upper())


@app.command()
def serve(host: str = typer.Option("127.0.0.1", help="Interface to bind."),
          port: int = typer.Option(3000, help="Port to listen on.")):
    """
    Run the relay service.
    """
    import uvicorn

    console.print(f"Relay running on http://{host}:{port}")
    uvicorn.run("imagerelay.main:app", host=host, port=port)


@app.command()
def ratios():
    """
    List supported aspect ratios.
    """
    table = Table("Ratio", "Label")
    for ratio in AspectRatio:
        table.add_row(ratio.value, ratio.label)
    console.print(table)


@app.command()
def generate(
    prompt: str = typer.Argument(..., help="Text describing the image."),
    aspect_ratio: str = typer.Option(AspectRatio.WIDE.value, "--aspect-ratio", "-r", help="16:9, 9:16 or 1:1."),
    provider: str = typer.Option("relay", help=f"One of: {', '.join(PROVIDERS)}."),
    reference: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="Reference image, kept locally for display."),
    download: bool = typer.Option(True, "--download/--no-download", help="Save the image when generation succeeds."),
    out: Path = typer.Option(Path(ArtifactStore.DEFAULT_DIR), help="Directory for downloaded images."),
):
    """
    Generate one image and optionally save it.
    """
    try:
        ratio = AspectRatio.parse(aspect_ratio)
        generator = get_generator(provider)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from None

    store = ArtifactStore(out)
    controller = FormController(generator, save_action=store.save)
    controller.update_prompt(prompt)
    controller.select_aspect_ratio(ratio)

    try:
        if reference is not None:
            controller.attach_reference_image(ReferenceImage.from_path(reference))
            console.print(f"Reference image loaded: {reference.name}")
        with console.status("Generating image..."):
            controller.submit()
    except ImageRelayError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(code=1)

    state = controller.snapshot()
    if state.error:
        console.print(f"[bold red]Error:[/] {state.error}")
        raise typer.Exit(code=1)

    console.print(f"[green]Generated[/] {state.result.mime_type} image ({len(state.result.image_b64)} base64 chars)")
    if download:
        artifact = controller.download()
        console.print(f"Saved {store.directory / artifact.filename}")


if __name__ == "__main__":
    app()
