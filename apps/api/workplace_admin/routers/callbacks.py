"""Webhook callback log viewer."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from workplace_admin.core.deps import get_db, require_user
from workplace_admin.services import callback_service
from workplace_admin.templating import render

router = APIRouter(tags=["callbacks"], dependencies=[Depends(require_user)])


@router.get("/callbacks")
def list_callbacks(
    request: Request,
    topic: str | None = None,
    db: Session = Depends(get_db),
):
    callbacks = callback_service.list_callbacks(db, topic)
    return render(
        request,
        "callbacks.html",
        {
            "callbacks": callbacks,
            "topic": topic if topic in callback_service.CALLBACK_TOPICS else None,
            "topics": callback_service.CALLBACK_TOPICS,
        },
    )


@router.post("/delete_callbacks")
def delete_callbacks(db: Session = Depends(get_db)):
    callback_service.delete_all_callbacks(db)
    return RedirectResponse(url="/callbacks", status_code=302)
