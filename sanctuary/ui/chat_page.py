"""NiceGUI research page with SSE streaming support."""

import json
import os
from collections.abc import Callable

import httpx
from nicegui import events, ui

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")

CUSTOM_CSS = """
<style>
    body { background: #05070a; color: #e2e8f0; min-height: 100vh; }
    .panel { background: #0b0f16; border: 1px solid rgba(255, 255, 255, 0.06); border-radius: 16px; }
    .theme-card { background: rgba(255, 255, 255, 0.03); border-radius: 12px; }
    .message-user { background: #4c1d95; color: white; border-radius: 18px 18px 4px 18px; }
    .message-assistant { background: #111827; color: #e5e7eb; border-radius: 18px 18px 18px 4px; }
    .history-item.active { background: rgba(139, 92, 246, 0.15); }
</style>
"""


class PageState:
    """Client-side copy of the API session for one browser tab."""

    def __init__(self) -> None:
        self.view: dict = {}
        self.conversations: list[dict] = []
        self.is_streaming: bool = False
        self.messages_container: ui.column | None = None

    @property
    def ready(self) -> bool:
        return self.view.get("phase") == "ready"


async def api_request(method: str, path: str, **kwargs) -> httpx.Response:
    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=300.0) as client:
        return await client.request(method, path, **kwargs)


def error_detail(response: httpx.Response) -> str:
    try:
        return str(response.json().get("detail", response.text))
    except ValueError:
        return response.text


async def stream_chat_response(
    message: str,
    on_chunk: Callable[[str], None],
    on_error: Callable[[str], None],
) -> None:
    """Consume SSE stream from /chat/stream endpoint."""
    async with httpx.AsyncClient(timeout=300.0) as client:
        try:
            async with client.stream(
                "POST",
                f"{API_BASE_URL}/chat/stream",
                json={"message": message},
                headers={"Accept": "text/event-stream"},
            ) as response:
                if response.status_code != 200:
                    await response.aread()
                    on_error(error_detail(response))
                    return
                async for line in response.aiter_lines():
                    if not line.startswith("data: "):
                        continue
                    data = json.loads(line[6:])
                    if data.get("error"):
                        on_error(data["error"])
                        return
                    if data.get("done"):
                        return
                    if content := data.get("content"):
                        on_chunk(content)
        except httpx.RequestError as e:
            on_error(f"Connection failed: {e}")


def render_turn(turn: dict) -> ui.markdown:
    is_user = turn["speaker"] == "user"
    align = "justify-end" if is_user else "justify-start"
    bubble = "message-user" if is_user else "message-assistant"
    with ui.row().classes(f"w-full {align}"):
        with ui.element("div").classes(f"max-w-[80%] px-4 py-3 {bubble}"):
            return ui.markdown(turn["text"]).classes("text-sm leading-relaxed")


@ui.page("/")
async def chat_page() -> None:
    """Main research page."""
    ui.add_head_html(CUSTOM_CSS)
    ui.dark_mode().enable()
    state = PageState()

    status_label: ui.label
    input_field: ui.textarea
    send_btn: ui.button
    upload: ui.upload

    async def refresh() -> None:
        view = await api_request("GET", "/conversations/active")
        history_response = await api_request("GET", "/conversations")
        state.view = view.json()
        state.conversations = history_response.json()
        status_label.set_text(state.view.get("status", ""))
        if state.view.get("persistence_error"):
            ui.notify("History could not be saved", type="warning")
        history.refresh()
        workspace.refresh()

    async def handle_upload(e: events.UploadEventArguments) -> None:
        status_label.set_text("Analyzing document...")
        content = await e.file.read()
        response = await api_request(
            "POST",
            "/upload/pdf",
            files={"file": (e.file.name, content, e.file.content_type)},
        )
        if response.status_code != 200:
            ui.notify(error_detail(response), type="negative")
        upload.reset()
        await refresh()

    async def select(conversation_id: str) -> None:
        response = await api_request("POST", f"/conversations/{conversation_id}/select")
        if response.status_code != 200:
            ui.notify(error_detail(response), type="negative")
        await refresh()

    async def delete(conversation_id: str) -> None:
        await api_request("DELETE", f"/conversations/{conversation_id}")
        await refresh()

    async def new_research() -> None:
        await api_request("POST", "/conversations/new")
        await refresh()

    async def send_message() -> None:
        text = input_field.value.strip()
        if not text or state.is_streaming or not state.ready:
            return

        input_field.value = ""
        state.is_streaming = True
        send_btn.disable()
        status_label.set_text("Generating response...")

        with state.messages_container:
            render_turn({"speaker": "user", "text": text})
            reply = render_turn({"speaker": "assistant", "text": ""})

        accumulated = ""

        def on_chunk(content: str) -> None:
            nonlocal accumulated
            accumulated += content
            reply.set_content(accumulated)

        def on_error(error: str) -> None:
            ui.notify(error, type="negative")

        await stream_chat_response(text, on_chunk, on_error)
        state.is_streaming = False
        send_btn.enable()
        await refresh()

    @ui.refreshable
    def history() -> None:
        if not state.conversations:
            ui.label("No conversations yet").classes("text-xs text-gray-500")
        for item in state.conversations:
            active = item["id"] == state.view.get("conversation_id")
            with ui.row().classes(
                f"history-item {'active' if active else ''} w-full items-center "
                "justify-between rounded-lg px-2 py-1"
            ):
                with ui.column().classes("gap-0 cursor-pointer").on(
                    "click", lambda _, cid=item["id"]: select(cid)
                ):
                    ui.label(item["title"]).classes("text-sm font-semibold")
                    suffix = "" if item["resumable"] else " (re-upload to resume)"
                    ui.label(f"{item['document_name']}{suffix}").classes(
                        "text-[10px] text-gray-500"
                    )
                ui.button(
                    icon="delete", on_click=lambda _, cid=item["id"]: delete(cid)
                ).props("flat round dense size=sm color=grey")

    @ui.refreshable
    def workspace() -> None:
        view = state.view
        if view.get("phase") != "ready":
            with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                ui.icon("upload_file").classes("text-5xl text-gray-600")
                ui.label("Upload your manuscript").classes("text-lg text-gray-400")
            state.messages_container = None
            return

        with ui.row().classes("w-full items-center justify-between"):
            ui.label(view.get("title") or "").classes("text-lg font-semibold")
            if view.get("preview_url"):
                ui.link(
                    "View manuscript", f"{API_BASE_URL}{view['preview_url']}", new_tab=True
                ).classes("text-xs")

        if view.get("themes"):
            with ui.expansion("Axiomatic insights", icon="auto_awesome", value=True).classes(
                "w-full"
            ):
                with ui.grid(columns=3).classes("w-full gap-3"):
                    for theme in view["themes"]:
                        with ui.column().classes("theme-card p-3 gap-1"):
                            ui.label(theme["label"]).classes("text-sm font-bold")
                            ui.label(theme["explanation"]).classes("text-xs text-gray-400")

        state.messages_container = ui.column().classes("w-full gap-4")
        with state.messages_container:
            for turn in view.get("turns", []):
                render_turn(turn)

    # === UI Layout ===
    with ui.row().classes("w-full min-h-screen p-4 gap-4 no-wrap"):
        with ui.column().classes("panel w-72 p-4 gap-3"):
            ui.button("New research", icon="add", on_click=new_research).classes("w-full")
            upload = (
                ui.upload(on_upload=handle_upload, auto_upload=True, max_files=1)
                .props('accept="application/pdf" flat bordered')
                .classes("w-full")
            )
            ui.separator()
            history()

        with ui.column().classes("panel flex-grow p-5 gap-4"):
            with ui.row().classes("w-full items-center justify-between"):
                ui.label("Sanctuary").classes("text-2xl font-black tracking-tight")
                status_label = ui.label("Ready").classes("text-xs uppercase text-gray-500")

            with ui.scroll_area().classes("flex-grow w-full"):
                workspace()

            with ui.row().classes("w-full gap-3 items-end"):
                input_field = (
                    ui.textarea(placeholder="Ask about the manuscript...")
                    .props("autogrow dense rows=1 outlined")
                    .classes("flex-grow")
                    .on("keydown.enter.prevent", send_message)
                )
                send_btn = ui.button(icon="send", on_click=send_message).props("round unelevated")

    await refresh()
