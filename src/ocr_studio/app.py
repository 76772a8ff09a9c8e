"""customtkinter front-end for OCR Studio."""

import logging
import os
from pathlib import Path
from tkinter import filedialog
from typing import Optional

import customtkinter as ctk
from async_tkinter_loop import async_handler, async_mainloop

from ocr_studio.budget import format_size
from ocr_studio.config import Config
from ocr_studio.errors import ImageDecodeError
from ocr_studio.image_compressor import PREVIEW_SIZE, preview_image
from ocr_studio.models.source_file import SourceFile
from ocr_studio.session import OcrSession
from ocr_studio.submitter import build_boundary

config = Config()
log = logging.getLogger(__name__)

FILE_TYPES = [
    ("Images and PDFs", "*.png *.jpg *.jpeg *.webp *.pdf"),
    ("PDF files", "*.pdf"),
    ("Images", "*.png *.jpg *.jpeg *.webp"),
]


def setup_logging() -> None:
    log_level = (
        logging.DEBUG
        if os.environ.get("OCR_DEBUG", "").lower() == "true"
        else logging.INFO
    )
    log_file = os.environ.get("OCR_LOG_FILE")
    if log_file:
        logging.basicConfig(
            level=log_level,
            filename=log_file,
            filemode="w",
            format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        logging.basicConfig(
            level=log_level,
            format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    logging.getLogger("httpx").setLevel(logging.WARNING)


class OCRApp:
    def __init__(self):
        ctk.set_appearance_mode(config.GUI_THEME)

        self.root = ctk.CTk()
        self.root.title("OCR Studio")
        self.root.geometry(f"{config.GUI_WINDOW_WIDTH}x{config.GUI_WINDOW_HEIGHT}")

        self.session = OcrSession(build_boundary(config), on_change=self._on_session_change)
        self.setup_ui()

    def setup_ui(self):
        self.main_frame = ctk.CTkFrame(self.root)
        self.main_frame.pack(fill="both", expand=True, padx=20, pady=20)
        self.main_frame.grid_columnconfigure(0, weight=1)
        self.main_frame.grid_columnconfigure(1, weight=2)
        self.main_frame.grid_rowconfigure(1, weight=1)

        # Source panel
        self.source_frame = ctk.CTkFrame(self.main_frame)
        self.source_frame.grid(row=0, column=0, rowspan=2, sticky="nsew", padx=(0, 10))

        ctk.CTkLabel(
            self.source_frame, text="Source", font=ctk.CTkFont(size=18, weight="bold")
        ).pack(pady=(10, 10))

        self.file_label = ctk.CTkLabel(
            self.source_frame, text="No file selected", wraplength=280
        )
        self.file_label.pack(padx=10, pady=5)

        self.preview_label = ctk.CTkLabel(
            self.source_frame,
            text="",
            width=PREVIEW_SIZE[0],
            height=PREVIEW_SIZE[1],
        )
        self.preview_label.pack(padx=10, pady=5)
        self.preview_image: Optional[ctk.CTkImage] = None
        self._preview_file: Optional[SourceFile] = None

        self.select_button = ctk.CTkButton(
            self.source_frame, text="Browse...", command=self._select_file
        )
        self.select_button.pack(fill="x", padx=10, pady=5)

        self.extract_button = ctk.CTkButton(
            self.source_frame,
            text="Extract Text",
            command=async_handler(self._start_processing),
            state="disabled",
        )
        self.extract_button.pack(fill="x", padx=10, pady=5)

        self.clear_button = ctk.CTkButton(
            self.source_frame, text="Clear", command=self._clear
        )
        self.clear_button.pack(fill="x", padx=10, pady=5)

        self.progress_label = ctk.CTkLabel(self.source_frame, text="Ready", wraplength=280)
        self.progress_label.pack(padx=10, pady=(20, 5))

        self.error_label = ctk.CTkLabel(
            self.source_frame, text="", text_color="#f87171", wraplength=280
        )
        self.error_label.pack(padx=10, pady=5)

        # Output panel
        self.output_header = ctk.CTkFrame(self.main_frame)
        self.output_header.grid(row=0, column=1, sticky="ew")

        self.output_name_label = ctk.CTkLabel(self.output_header, text="output.md")
        self.output_name_label.pack(side="left", padx=10, pady=5)

        self.save_button = ctk.CTkButton(
            self.output_header, text="Download", width=90, command=self._save_markdown
        )
        self.save_button.pack(side="right", padx=5, pady=5)

        self.copy_button = ctk.CTkButton(
            self.output_header, text="Copy", width=70, command=self._copy_to_clipboard
        )
        self.copy_button.pack(side="right", padx=5, pady=5)

        self.output_text = ctk.CTkTextbox(self.main_frame, wrap="word")
        self.output_text.grid(row=1, column=1, sticky="nsew", pady=(10, 0))
        self.output_text.bind("<KeyRelease>", lambda _event: self._update_footer())

        self.footer_label = ctk.CTkLabel(self.main_frame, text="Ready")
        self.footer_label.grid(row=2, column=1, sticky="e", pady=(5, 0))

    def _show_preview(self, file: Optional[SourceFile]):
        """Thumbnail for images, a placeholder for PDFs."""
        if file is self._preview_file:
            return
        self._preview_file = file
        self.preview_image = None

        if file is None:
            self.preview_label.configure(image="", text="")
        elif file.is_image:
            try:
                thumbnail = preview_image(file)
            except ImageDecodeError as e:
                log.warning(e.message)
                self.preview_label.configure(image="", text="Preview unavailable")
                return
            self.preview_image = ctk.CTkImage(
                light_image=thumbnail, size=(thumbnail.width, thumbnail.height)
            )
            self.preview_label.configure(image=self.preview_image, text="")
        elif file.is_pdf:
            self.preview_label.configure(image="", text="PDF Document")
        else:
            self.preview_label.configure(image="", text="")

    def _select_file(self):
        file_path = filedialog.askopenfilename(title="Select file", filetypes=FILE_TYPES)
        if file_path:
            self.session.select_path(Path(file_path))

    async def _start_processing(self):
        self.extract_button.configure(state="disabled", text="Processing...")
        try:
            await self.session.process()
        finally:
            self._on_session_change(self.session)

    def _clear(self):
        self.session.clear()

    def _current_text(self) -> str:
        return self.output_text.get("1.0", "end-1c")

    def _copy_to_clipboard(self):
        text = self._current_text()
        if not text:
            return
        self.root.clipboard_clear()
        self.root.clipboard_append(text)
        self.copy_button.configure(text="Copied")
        self.root.after(2000, lambda: self.copy_button.configure(text="Copy"))

    def _save_markdown(self):
        text = self._current_text()
        if not text:
            return
        target = filedialog.asksaveasfilename(
            title="Save Markdown",
            initialfile=self.session.output_filename(),
            defaultextension=config.OUTPUT_SUFFIX,
            filetypes=[("Markdown", f"*{config.OUTPUT_SUFFIX}")],
        )
        if target:
            target_path = Path(target)
            self.session.export_markdown(
                target_path.parent, text=text, filename=target_path.name
            )

    def _update_footer(self):
        text = self._current_text()
        if text:
            self.footer_label.configure(
                text=f"{len(text.splitlines())} lines · {len(text)} chars"
            )
        else:
            self.footer_label.configure(text="Ready")

    def _on_session_change(self, session: OcrSession):
        file = session.current_file
        if file:
            self.file_label.configure(text=f"{file.name}\n{format_size(file.size)}")
        else:
            self.file_label.configure(text="No file selected")
        self._show_preview(file)
        self.output_name_label.configure(text=session.output_filename())

        processing = session.is_processing
        self.extract_button.configure(
            state="disabled" if processing or not file else "normal",
            text="Processing..." if processing else "Extract Text",
        )
        self.progress_label.configure(text=session.status or "Ready")
        self.error_label.configure(text=session.error or "")

        if not processing:
            self.output_text.delete("1.0", "end")
            self.output_text.insert("1.0", session.text)
            self._update_footer()


def main():
    setup_logging()
    config.load()
    app = OCRApp()
    async_mainloop(app.root)


if __name__ == "__main__":
    main()
