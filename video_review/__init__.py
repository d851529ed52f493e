'''
video_review/
    __init__.py
    __main__.py

    app.py                 # click entry point + QApplication boot
    main_window.py         # QMainWindow layout + wiring

    domain.py              # dataclasses: Author, Comment, CommentDraft, Project
    timeutils.py           # M:SS / SRT formatting, percent <-> time, marker placement
    interaction.py         # timeline hover/drag state machine (no Qt)
    ordering.py            # display order, per-author numbering, reply threads
    comment_store.py       # confirmed-state comment list for one project
    sync.py                # push subscription or status polling
    projects.py            # project listing + feedback status
    exports.py             # SRT / CSV rendering
    persistence.py         # atomic writes, config.json, record store factory
    media.py               # video source validation

    records/
      base.py              # RecordStore interface + errors + change events
      memory.py            # in-process store with push
      jsonfile.py          # single JSON file store
      rest.py              # PostgREST-style HTTP store (httpx)

    widgets/
      video_player.py      # QMediaPlayer + video surface
      comment_timeline.py  # scrub bar with comment markers + playhead drag
      comments_panel.py    # threaded comment tree + actions

    dialogs/
      open_project.py      # project picker
      comment_dialog.py    # comment / reply text prompt
'''

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
