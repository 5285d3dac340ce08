from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel

from kruai.core.config import settings
from kruai.services.generation import ChatMessage, ContentGenerator, SummaryData, get_generator
from kruai.services.intake import has_material, material_from_upload

router = APIRouter()

# utf-8 needs at most 4 bytes per character
UPLOAD_READ_BYTES = settings.MAX_INPUT_CHARS * 4


class SummaryRequest(BaseModel):
    text: str = ""
    file_name: Optional[str] = None
    style: Literal["SHORT", "DETAILED"] = "SHORT"


class ChatRequest(BaseModel):
    message: str
    history: List[ChatMessage] = []
    summary: SummaryData


class ChatReply(BaseModel):
    role: str = "model"
    text: str


def _summarise(gen: ContentGenerator, text: str, file_name: Optional[str], style: str) -> SummaryData:
    if not has_material(text, file_name):
        raise HTTPException(400, "Please paste some study material or upload a file first")
    return gen.generate_summary(text, file_name=file_name, style=style)


@router.post("/summary", response_model=SummaryData)
def summarise_text(payload: SummaryRequest, gen: ContentGenerator = Depends(get_generator)):
    return _summarise(gen, payload.text, payload.file_name, payload.style)


@router.post("/upload", response_model=SummaryData)
async def summarise_upload(
    file: UploadFile = File(...),
    style: Literal["SHORT", "DETAILED"] = Form("SHORT"),
    gen: ContentGenerator = Depends(get_generator),
):
    text, file_name = material_from_upload(file.filename, file.content_type, await file.read(UPLOAD_READ_BYTES))
    return _summarise(gen, text, file_name, style)


@router.post("/chat", response_model=ChatReply)
def chat(payload: ChatRequest, gen: ContentGenerator = Depends(get_generator)):
    if not payload.message.strip():
        raise HTTPException(400, "Message is empty")
    return ChatReply(text=gen.chat_with_teacher(payload.message, payload.history, payload.summary))
