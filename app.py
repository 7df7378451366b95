#!/usr/bin/env python3
"""
Voxel Renderer Web Interface

A simple Gradio-based web UI for rendering MagicaVoxel models to sprites.

Run with: python app.py
Then open http://localhost:7860 in your browser
"""

import sys
from pathlib import Path
import tempfile
from typing import List

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import gradio as gr
from PIL import Image
from voxel_renderer import VoxRenderer, RenderOptions, Side, View, output_name
from voxel_renderer.errors import VoxRenderError

ALL = "All"


def model_choices(vox_path) -> List[str]:
    """Model dropdown entries for an uploaded file: "All" plus each model index."""
    if vox_path is None:
        return [ALL]
    try:
        count = VoxRenderer.from_file(vox_path).model_count
    except VoxRenderError:
        return [ALL]
    return [ALL] + [str(i) for i in range(count)]


def update_model_choices(vox_path):
    return gr.Dropdown(choices=model_choices(vox_path), value=ALL)


def process_model(
    vox_path,
    model: str,
    side: str,
    view: str,
    preview_scale: int
):
    """
    Render an uploaded .vox file.

    Returns gallery items, stats text, and file paths for downloads.
    """
    if vox_path is None:
        return None, "Please upload a .vox file first.", None

    try:
        renderer = VoxRenderer.from_file(vox_path)
        options = RenderOptions(
            model=None if model == ALL else int(model),
            side=None if side == ALL else Side.parse(side),
            view=None if view == ALL else View.parse(view),
            output=tempfile.mkdtemp(prefix="voxel_sprites_")
        )
        combinations = list(renderer.combinations(options))
        paths = renderer.render_all(options)
    except (VoxRenderError, ValueError) as e:
        return None, f"**Error:** {e}", None

    gallery = []
    for (model_index, model_side, model_view), path in zip(combinations, paths):
        with Image.open(path) as sprite:
            preview = sprite.resize(
                (sprite.width * preview_scale, sprite.height * preview_scale),
                Image.Resampling.NEAREST
            )
        gallery.append((preview, output_name(model_side, model_view, model_index)))

    voxel_counts = ", ".join(str(m.voxel_count) for m in renderer.data.models)
    stats_text = f"""## Rendering Complete!

| Metric | Value |
|--------|-------|
| Models | {renderer.model_count} |
| Voxels per model | {voxel_counts} |
| Sprites | {len(paths)} |

**Selection:** model={model}, side={side}, view={view}
"""

    return gallery, stats_text, [str(p) for p in paths]


# Build the Gradio interface
with gr.Blocks(title="Voxel Renderer") as app:

    gr.Markdown("""
    # Voxel Renderer
    ### Render MagicaVoxel Models to Pixel Art Sprites

    Upload a .vox file, pick what to render, and download the sprites!
    """)

    with gr.Row():
        # Left column - Input
        with gr.Column(scale=1):
            gr.Markdown("### Input Model")

            vox_input = gr.File(
                label="Upload .vox file",
                file_types=[".vox"],
                type="filepath"
            )

            gr.Markdown("### Settings")

            model_choice = gr.Dropdown(
                choices=[ALL],
                value=ALL,
                label="Model"
            )

            side_choice = gr.Dropdown(
                choices=[ALL] + [s.value for s in Side.all()],
                value=ALL,
                label="Side"
            )

            view_choice = gr.Dropdown(
                choices=[ALL] + [v.value for v in View.all()],
                value=ALL,
                label="View"
            )

            preview_scale = gr.Slider(
                minimum=1,
                maximum=16,
                value=4,
                step=1,
                label="Preview Scale"
            )

            render_btn = gr.Button("Render Sprites", variant="primary")

        # Middle column - Preview
        with gr.Column(scale=2):
            gr.Markdown("### Preview")

            sprite_gallery = gr.Gallery(
                label="Rendered Sprites",
                columns=4
            )

            stats_output = gr.Markdown(
                value="Upload a model and click 'Render' to see results."
            )

        # Right column - Downloads
        with gr.Column(scale=1):
            gr.Markdown("### Downloads")

            sprite_files = gr.File(label="PNG Sprites", file_count="multiple")

            gr.Markdown("""
            ---
            **Tips:**
            - **top** and **bottom** only render in the **face** view
            - **22.5** views are twice as wide as **45** views
            - Files are named side_view_model.png
            """)

    vox_input.change(
        fn=update_model_choices,
        inputs=vox_input,
        outputs=model_choice
    )

    render_btn.click(
        fn=process_model,
        inputs=[vox_input, model_choice, side_choice, view_choice, preview_scale],
        outputs=[sprite_gallery, stats_output, sprite_files]
    )


if __name__ == "__main__":
    print("\n" + "="*60)
    print("Voxel Renderer Web Interface")
    print("="*60)
    print("\nStarting server...")
    print("Open http://localhost:7860 in your browser\n")

    app.launch(
        server_name="0.0.0.0",
        server_port=7860,
        share=False
    )
