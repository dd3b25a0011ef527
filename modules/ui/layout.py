"""Gradio layout: ideation chat on the left, image workspace on the right."""

from __future__ import annotations

from typing import Any, Sequence

import gradio as gr

from config.settings import AppConfig
from modules.assistant.chat_assistant import SUGGESTION_CHIPS, backend_names
from modules.services.artifact_store import AspectRatio, GenerationModel
from modules.services.key_gate import ApiKeyGate
from modules.ui.callbacks import build_callbacks

MODEL_LABELS = {
    GenerationModel.FAST: "Fast (Gemini 2.5 Flash Image)",
    GenerationModel.HIGH_FIDELITY: "High fidelity (Gemini 3 Pro Image)",
}


def _aspect_choices() -> Sequence[str]:
    return [ratio.value for ratio in AspectRatio]


def _model_choices() -> Sequence[tuple[str, str]]:
    return [(MODEL_LABELS[model], model.value) for model in GenerationModel]


def build_app(config: AppConfig) -> Any:
    """Compose and return the Gradio application."""
    gate = ApiKeyGate(config)
    callbacks_map = build_callbacks(config, gate=gate)
    backend_choices = backend_names(config)
    default_backend = config.chat_backend if config.chat_backend in backend_choices else backend_choices[0]
    unlocked = gate.has_selected_api_key()

    with gr.Blocks(title="GlowMint Muse") as demo:
        session_state = gr.State(None)
        gr.Markdown("## ✨ GlowMint Muse")

        # Key gate
        with gr.Column(visible=not unlocked) as gate_panel:
            gr.Markdown(
                "### Connect your Gemini API key\n"
                "Image generation runs on your own Google AI project. "
                "Paste a key to unlock the studio."
            )
            key_input = gr.Textbox(label="Gemini API key", type="password")
            connect_btn = gr.Button("Connect API key", variant="primary")
            gate_status = gr.Markdown("")

        with gr.Row(visible=unlocked) as studio:
            # Ideation chat
            with gr.Column(scale=2):
                chatbot = gr.Chatbot(label="Muse", type="messages", height=460)
                chat_input = gr.Textbox(
                    label="Message",
                    lines=2,
                    placeholder="Describe your vision...",
                )
                with gr.Row():
                    for chip in SUGGESTION_CHIPS:
                        chip_btn = gr.Button(chip, size="sm")
                        chip_btn.click(fn=lambda text=chip: text, inputs=None, outputs=[chat_input])
                chat_attachment = gr.Image(label="Attach image (optional)", type="filepath")
                with gr.Row():
                    backend_select = gr.Dropdown(
                        label="Assistant model",
                        choices=list(backend_choices),
                        value=default_backend,
                    )
                    send_btn = gr.Button("Send", variant="primary")
                    clear_btn = gr.Button("Clear chat")
                with gr.Row():
                    suggestion_select = gr.Dropdown(label="Suggested prompts", choices=[], value=None)
                    use_prompt_btn = gr.Button("Use prompt")
                    import_btn = gr.Button("Import attachment to workspace")

            # Image workspace
            with gr.Column(scale=3):
                prompt = gr.Textbox(label="Prompt", lines=3, placeholder="A lighthouse made of coral...")
                with gr.Row():
                    aspect_select = gr.Dropdown(
                        label="Aspect ratio",
                        choices=list(_aspect_choices()),
                        value=config.default_aspect_ratio,
                    )
                    model_select = gr.Dropdown(
                        label="Model",
                        choices=list(_model_choices()),
                        value=config.default_model,
                    )
                negative = gr.Textbox(label="Negative prompt", lines=1, placeholder="What to avoid")
                generate_btn = gr.Button("Generate", variant="primary")

                viewer = gr.HTML()
                status = gr.Markdown("Ready.")
                with gr.Row():
                    undo_btn = gr.Button("↶ Older", interactive=False)
                    redo_btn = gr.Button("↷ Newer", interactive=False)
                    analyze_btn = gr.Button("🧐 Critique")
                    download_btn = gr.Button("⬇️ Download")
                analysis = gr.Markdown("")
                with gr.Row():
                    instruction = gr.Textbox(
                        label="Magic edit",
                        placeholder="e.g. 'Make the lighting moodier', 'Turn the cat into a dog'",
                    )
                    refine_btn = gr.Button("Apply edit")
                history = gr.Radio(label="History", choices=[], value=None)
                download_file = gr.File(label="Download", interactive=False)

        workspace_outputs = [session_state, viewer, history, prompt, analysis, status, undo_btn, redo_btn]
        settings_inputs = [aspect_select, model_select, negative]

        demo.load(fn=callbacks_map["on_load"], inputs=[session_state], outputs=[session_state, chatbot])

        connect_btn.click(
            fn=callbacks_map["on_connect_key"],
            inputs=[key_input],
            outputs=[gate_panel, studio, gate_status],
        )

        send_event = dict(
            fn=callbacks_map["on_send_message"],
            inputs=[session_state, chat_input, chat_attachment, backend_select],
            outputs=[session_state, chatbot, chat_input, chat_attachment, suggestion_select],
        )
        send_btn.click(**send_event)
        chat_input.submit(**send_event)
        clear_btn.click(
            fn=callbacks_map["on_clear_chat"],
            inputs=[session_state],
            outputs=[session_state, chatbot, suggestion_select],
        )
        use_prompt_btn.click(
            fn=callbacks_map["on_use_prompt"],
            inputs=[session_state, suggestion_select],
            outputs=[session_state, prompt],
        )
        import_btn.click(
            fn=callbacks_map["on_import_image"],
            inputs=[session_state, prompt, chat_attachment],
            outputs=workspace_outputs,
        )

        generate_btn.click(
            fn=callbacks_map["on_generate"],
            inputs=[session_state, prompt, *settings_inputs],
            outputs=workspace_outputs,
        )
        refine_btn.click(
            fn=callbacks_map["on_refine"],
            inputs=[session_state, prompt, instruction, *settings_inputs],
            outputs=[*workspace_outputs, instruction],
        )
        analyze_btn.click(
            fn=callbacks_map["on_analyze"],
            inputs=[session_state, prompt],
            outputs=workspace_outputs,
        )
        undo_btn.click(fn=callbacks_map["on_undo"], inputs=[session_state, prompt], outputs=workspace_outputs)
        redo_btn.click(fn=callbacks_map["on_redo"], inputs=[session_state, prompt], outputs=workspace_outputs)
        history.input(
            fn=callbacks_map["on_select"],
            inputs=[session_state, prompt, history],
            outputs=workspace_outputs,
        )
        download_btn.click(fn=callbacks_map["on_download"], inputs=[session_state], outputs=[download_file])

    return demo
