from datetime import datetime
from typing import List, Optional

from ninja import Schema


class IssueDownloadResponse(Schema):
    success: bool
    token: str
    productName: str
    downloadUrl: Optional[str] = None
    version: Optional[str] = None
    setupInstructions: Optional[str] = None
    requirements: List[str] = []
    expiresIn: int
    maxDownloads: int


class RedeemDownloadRequest(Schema):
    token: Optional[str] = None


class RedeemDownloadResponse(Schema):
    success: bool
    downloadUrl: str
    version: Optional[str] = None
    remainingDownloads: int


class VideoUrlResponse(Schema):
    url: str
    expiresIn: int


class LessonProgressRequest(Schema):
    progressSeconds: int
    completed: bool = False


class LessonProgressResponse(Schema):
    success: bool
    progressSeconds: int
    completed: bool
    lastWatchedAt: datetime
