"""
Compose Session State Machine

This module owns the interactive lifecycle of one compose session:
Composing -> (FilePrompt | DraftBrowser) -> Composing -> Posting ->
(Success | Error) -> Composing.

The session never touches the network. Posting hands a PostJob to the
``submit`` callable (the pipeline's job channel) and the state stays frozen
in Posting until ``apply_outcome`` delivers the pipeline's answer.
"""

from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Tuple, Union

from data.models import Draft, PostFailure, PostJob, PostOutcome, PostSuccess
from data.protocols import DraftStorage
from services.protocols import ImageSource
from ui import keys
from ui.keys import KeyEvent
from ui.text_buffer import TextBuffer
from utils.exceptions import DraftStorageError, ImageError
from utils.logger import get_logger

logger = get_logger(__name__)


# =============================================================================
# States
# =============================================================================

@dataclass(frozen=True)
class Composing:
    pass


@dataclass(frozen=True)
class FilePrompt:
    pass


@dataclass(frozen=True)
class DraftBrowser:
    pass


@dataclass(frozen=True)
class Posting:
    pass


@dataclass(frozen=True)
class Success:
    remote_id: str


@dataclass(frozen=True)
class Error:
    message: str


SessionState = Union[Composing, FilePrompt, DraftBrowser, Posting, Success, Error]


@dataclass(frozen=True)
class SessionView:
    """Everything the renderer needs for one frame. Read-only."""
    state: SessionState
    lines: Tuple[str, ...]
    cursor: Tuple[int, int]
    char_count: int
    has_image: bool
    draft_loaded: bool
    file_path_input: str = ""
    draft_previews: Tuple[str, ...] = field(default_factory=tuple)
    selected_draft: Optional[int] = None
    status_message: Optional[str] = None


# =============================================================================
# Session
# =============================================================================

class Session:
    """
    Compose session: state, text buffer, attached image and draft cache.

    Args:
        submit: Called with a PostJob when the user posts.
        images: Clipboard and file image reader.
        drafts: Draft storage.
    """

    def __init__(self, submit: Callable[[PostJob], None], images: ImageSource,
                 drafts: DraftStorage):
        self.submit = submit
        self.images = images
        self.drafts = drafts

        self.state: SessionState = Composing()
        self.buffer = TextBuffer()
        self.image: Optional[bytes] = None
        self.file_path_input = ""
        self.draft_list: List[Draft] = []
        self.selected_draft: Optional[int] = None
        self.current_draft_id: Optional[str] = None
        self.status_message: Optional[str] = None

    # -------------------------------------------------------------------------
    # Derived data
    # -------------------------------------------------------------------------

    @property
    def has_image(self) -> bool:
        return self.image is not None

    @property
    def draft_loaded(self) -> bool:
        return self.current_draft_id is not None

    def view(self) -> SessionView:
        return SessionView(
            state=self.state,
            lines=tuple(self.buffer.lines),
            cursor=self.buffer.cursor,
            char_count=self.buffer.char_count(),
            has_image=self.has_image,
            draft_loaded=self.draft_loaded,
            file_path_input=self.file_path_input,
            draft_previews=tuple(d.preview() for d in self.draft_list),
            selected_draft=self.selected_draft,
            status_message=self.status_message,
        )

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def handle_key(self, key: KeyEvent) -> bool:
        """
        React to one key press.

        Args:
            key: The normalized key.

        Returns:
            bool: False when the user asked to exit, True otherwise.
        """
        state = self.state
        if isinstance(state, Composing):
            return self._on_composing_key(key)
        if isinstance(state, FilePrompt):
            self._on_file_prompt_key(key)
            return True
        if isinstance(state, DraftBrowser):
            self._on_draft_browser_key(key)
            return True
        if isinstance(state, Posting):
            # Frozen until the pipeline reports back.
            return True
        if isinstance(state, (Success, Error)):
            return self._on_result_key(key)
        raise TypeError(f"Unknown session state: {state!r}")

    def apply_outcome(self, outcome: PostOutcome) -> None:
        """Move from Posting to Success or Error."""
        if not isinstance(self.state, Posting):
            logger.warning(f"Ignoring post outcome received outside Posting: {outcome!r}")
            return
        if isinstance(outcome, PostSuccess):
            logger.info(f"Post published with id {outcome.remote_id}")
            self.state = Success(outcome.remote_id)
        elif isinstance(outcome, PostFailure):
            logger.error(f"Post failed: {outcome.message}")
            self.state = Error(outcome.message)
        else:
            raise TypeError(f"Unknown post outcome: {outcome!r}")

    def reset(self) -> None:
        """Fresh Composing state: empty text, no image, no draft link."""
        self.buffer.clear()
        self.image = None
        self.file_path_input = ""
        self.current_draft_id = None
        self.status_message = None
        self.state = Composing()

    # -------------------------------------------------------------------------
    # Composing
    # -------------------------------------------------------------------------

    def _on_composing_key(self, key: KeyEvent) -> bool:
        name = key.name
        if name in (keys.ESC, keys.CTRL_C):
            return False
        if name == keys.CTRL_P:
            self._start_post()
        elif name == keys.CTRL_U:
            self.file_path_input = ""
            self.state = FilePrompt()
        elif name == keys.CTRL_V:
            self._attach_clipboard_image()
        elif name == keys.CTRL_S:
            self._save_draft()
        elif name == keys.CTRL_D:
            self._open_draft_browser()
        elif name == keys.CTRL_X:
            if self.image is not None:
                self.image = None
                self.status_message = "Image removed"
        else:
            self._edit(key)
        return True

    def _edit(self, key: KeyEvent) -> None:
        edits = {
            keys.ENTER: self.buffer.insert_newline,
            keys.BACKSPACE: self.buffer.backspace,
            keys.DELETE: self.buffer.delete,
            keys.LEFT: self.buffer.move_left,
            keys.RIGHT: self.buffer.move_right,
            keys.UP: self.buffer.move_up,
            keys.DOWN: self.buffer.move_down,
            keys.HOME: self.buffer.move_home,
            keys.END: self.buffer.move_end,
        }
        if key.name == keys.CHAR and key.char:
            self.buffer.insert_char(key.char)
        elif key.name in edits:
            edits[key.name]()
        else:
            return
        self.status_message = None

    def _start_post(self) -> None:
        if self.buffer.is_blank():
            self.status_message = "Nothing to post"
            return
        # The job gets its own copies; the buffer stays editable after the post.
        job = PostJob(text=self.buffer.text, image=bytes(self.image) if self.image is not None else None)
        self.status_message = None
        self.state = Posting()
        logger.info(f"Posting {len(job.text)} chars (image attached: {job.image is not None})")
        self.submit(job)

    def _attach_clipboard_image(self) -> None:
        try:
            self.image = self.images.from_clipboard()
        except ImageError as e:
            self.state = Error(f"Clipboard error: {e}")
            return
        self.status_message = "Image attached from clipboard"

    def _save_draft(self) -> None:
        text = self.buffer.text
        if not text.strip():
            self.status_message = "Nothing to save"
            return

        existing = None
        if self.current_draft_id is not None:
            existing = next((d for d in self.draft_list if d.id == self.current_draft_id), None)
        if existing is None:
            draft = Draft.new(text)
        else:
            # Edit a copy so a failed save leaves the cached draft as stored.
            draft = replace(existing)
            draft.update_content(text)

        try:
            self.drafts.save(draft)
        except DraftStorageError as e:
            self.state = Error(f"Draft error: {e}")
            return

        if existing is None:
            self.draft_list.insert(0, draft)
        else:
            index = next(i for i, d in enumerate(self.draft_list) if d is existing)
            self.draft_list[index] = draft
        self.current_draft_id = draft.id
        self.status_message = "Draft saved"

    # -------------------------------------------------------------------------
    # FilePrompt
    # -------------------------------------------------------------------------

    def _on_file_prompt_key(self, key: KeyEvent) -> None:
        name = key.name
        if name == keys.ESC:
            self.file_path_input = ""
            self.state = Composing()
        elif name == keys.ENTER:
            self._confirm_file_path()
        elif name == keys.BACKSPACE:
            self.file_path_input = self.file_path_input[:-1]
        elif name == keys.CHAR and key.char:
            self.file_path_input += key.char

    def _confirm_file_path(self) -> None:
        path = self.file_path_input.strip()
        if not path:
            self.state = Composing()
            return
        try:
            self.image = self.images.from_file(path)
        except ImageError as e:
            self.state = Error(f"Image error: {e}")
            return
        self.file_path_input = ""
        self.status_message = "Image attached"
        self.state = Composing()

    # -------------------------------------------------------------------------
    # DraftBrowser
    # -------------------------------------------------------------------------

    def _open_draft_browser(self) -> None:
        try:
            self.draft_list = self.drafts.load_all()
        except DraftStorageError as e:
            self.state = Error(f"Draft error: {e}")
            return
        self.selected_draft = 0 if self.draft_list else None
        self.status_message = None
        self.state = DraftBrowser()

    def _on_draft_browser_key(self, key: KeyEvent) -> None:
        name = key.name
        if name == keys.ESC:
            self.state = Composing()
        elif name == keys.DOWN:
            self.next_draft()
        elif name == keys.UP:
            self.previous_draft()
        elif name == keys.ENTER:
            self.select_current_draft()
        elif name == keys.DELETE:
            self.delete_selected_draft()

    def next_draft(self) -> None:
        if not self.draft_list:
            return
        if self.selected_draft is None or self.selected_draft >= len(self.draft_list) - 1:
            self.selected_draft = 0
        else:
            self.selected_draft += 1

    def previous_draft(self) -> None:
        if not self.draft_list:
            return
        if self.selected_draft is None:
            self.selected_draft = 0
        elif self.selected_draft == 0:
            self.selected_draft = len(self.draft_list) - 1
        else:
            self.selected_draft -= 1

    def select_current_draft(self) -> None:
        if self.selected_draft is None or self.selected_draft >= len(self.draft_list):
            return
        draft = self.draft_list[self.selected_draft]
        self.buffer.set_text(draft.content)
        self.current_draft_id = draft.id
        self.status_message = "Draft loaded"
        self.state = Composing()

    def delete_selected_draft(self) -> None:
        index = self.selected_draft
        if index is None or index >= len(self.draft_list):
            return
        draft = self.draft_list[index]
        try:
            self.drafts.delete(draft.id)
        except DraftStorageError as e:
            self.state = Error(f"Draft error: {e}")
            return

        del self.draft_list[index]
        if self.current_draft_id == draft.id:
            self.current_draft_id = None

        if not self.draft_list:
            self.selected_draft = None
        elif index >= len(self.draft_list):
            self.selected_draft = len(self.draft_list) - 1

    # -------------------------------------------------------------------------
    # Success / Error
    # -------------------------------------------------------------------------

    def _on_result_key(self, key: KeyEvent) -> bool:
        if key.name == keys.ESC:
            return False
        if isinstance(self.state, Success):
            self.reset()
        else:
            # Keep the text and image so a failed post can be retried.
            self.file_path_input = ""
            self.state = Composing()
        return True
