"""search_kb tool: search knowledge-base articles."""

from __future__ import annotations

from pydantic import BaseModel, Field

from concierge.tools.base import BaseTool, ToolResult


class SearchKbInput(BaseModel):
    query: str = Field(description="The search query to find relevant articles")
    category: str | None = Field(
        default=None,
        description='Optional category to filter articles (e.g., "hours", "fees", "services")',
    )
    limit: int = Field(
        default=5, ge=1, le=20,
        description="Maximum number of articles to return (default: 5)",
    )


class SearchKbTool(BaseTool):
    name = "search_kb"
    description = (
        "Search the knowledge base for articles matching a query. Use this to find "
        "official information about services, policies, hours, fees, etc."
    )
    input_model = SearchKbInput

    async def execute(self, params: SearchKbInput) -> ToolResult:
        if not params.query.strip():
            return ToolResult.fail("Query parameter is required and cannot be empty")

        articles = self.campus.search_articles(
            params.query, category=params.category, limit=params.limit
        )
        return ToolResult.ok(
            {
                "articles": [
                    {
                        "id": a.id,
                        "title": a.title,
                        "category": a.category,
                        "content": a.content,
                        "created_at": a.created_at.isoformat(),
                    }
                    for a in articles
                ],
                "count": len(articles),
            }
        )
