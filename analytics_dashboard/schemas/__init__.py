from .base import CamelModel
from .merchant_schema import (
    MerchantRole,
    MerchantInfo,
    UserMerchantInfo,
    AssignmentInfo,
    CreateAssignmentRequest,
    SetupRequest,
)
from .auth_schema import (
    AuthedUser,
    MagicLinkRequest,
    MagicLinkResponse,
    SessionTokens,
    RefreshTokenRequest,
    MeResponse,
)
from .query_schema import (
    ChartType,
    ChartConfig,
    PromptRequest,
    QueryGenerationResponse,
    ExecuteQueryRequest,
    QueryResult,
    McpQueryMetadata,
    McpVisualization,
    McpQueryResponse,
)
from .history_schema import (
    HistoryStatus,
    PromptHistoryItem,
    PromptHistoryCreate,
    PromptHistoryUpdate,
    HistoryStats,
)
from .transaction_schema import (
    TransactionStatus,
    ErrorCategory,
    TransactionOut,
    Pagination,
    TransactionStats,
    TransactionListResponse,
)
from .solution_schema import (
    GenerateSolutionRequest,
    SolutionResponse,
    ResolutionStep,
    ResolutionGuide,
)

__all__ = [
    "CamelModel",
    "MerchantRole",
    "MerchantInfo",
    "UserMerchantInfo",
    "AssignmentInfo",
    "CreateAssignmentRequest",
    "SetupRequest",
    "AuthedUser",
    "MagicLinkRequest",
    "MagicLinkResponse",
    "SessionTokens",
    "RefreshTokenRequest",
    "MeResponse",
    "ChartType",
    "ChartConfig",
    "PromptRequest",
    "QueryGenerationResponse",
    "ExecuteQueryRequest",
    "QueryResult",
    "McpQueryMetadata",
    "McpVisualization",
    "McpQueryResponse",
    "HistoryStatus",
    "PromptHistoryItem",
    "PromptHistoryCreate",
    "PromptHistoryUpdate",
    "HistoryStats",
    "TransactionStatus",
    "ErrorCategory",
    "TransactionOut",
    "Pagination",
    "TransactionStats",
    "TransactionListResponse",
    "GenerateSolutionRequest",
    "SolutionResponse",
    "ResolutionStep",
    "ResolutionGuide",
]
