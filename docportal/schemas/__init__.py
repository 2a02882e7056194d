from docportal.schemas.schemas import (
    OKResponse,
    LoginRequest, TokenResponse, VerifyResponse, ChangePasswordRequest,
    UserCreate, UserUpdate, UserResponse, UserListResponse,
    DocMetadata, TocEntry, DocResponse, DocSaveRequest,
    FileContentResponse, FileSaveRequest, FileCreateRequest, FileDuplicateRequest,
    FileRenameRequest, FileMoveRequest, FileOpResponse, UploadResponse,
    SearchResult, SearchGroup, SearchResponse, SearchStatsResponse,
    RenderRequest, RenderResponse, ConvertRequest, SlashCommand, SlashCommandList,
    AnalyticsResponse,
)

__all__ = [
    "OKResponse",
    "LoginRequest", "TokenResponse", "VerifyResponse", "ChangePasswordRequest",
    "UserCreate", "UserUpdate", "UserResponse", "UserListResponse",
    "DocMetadata", "TocEntry", "DocResponse", "DocSaveRequest",
    "FileContentResponse", "FileSaveRequest", "FileCreateRequest", "FileDuplicateRequest",
    "FileRenameRequest", "FileMoveRequest", "FileOpResponse", "UploadResponse",
    "SearchResult", "SearchGroup", "SearchResponse", "SearchStatsResponse",
    "RenderRequest", "RenderResponse", "ConvertRequest", "SlashCommand", "SlashCommandList",
    "AnalyticsResponse",
]
