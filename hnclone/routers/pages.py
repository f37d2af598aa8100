"""
Server-rendered pages.

Every page binds a GraphQL document and runs it in-process against the
schema with the same per-request context the ``/graphql`` endpoint
uses, then renders the result with Jinja2.
"""
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlencode, urlparse

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from hnclone.config import settings
from hnclone.database import get_db
from hnclone.graphql.context import GraphQLContext, InvalidInputError, NotAuthenticatedError
from hnclone.graphql.schema import execute
from hnclone.security import get_current_user_id
from hnclone.services.feed_service import FeedType

router = APIRouter(tags=["pages"], default_response_class=HTMLResponse)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

COMMENT_TREE_DEPTH = 8

# GraphQL `Int` is a signed 32-bit integer.
GRAPHQL_INT_MAX = 2**31 - 1

# ---------------------------------------------------------------------------
# GraphQL documents
# ---------------------------------------------------------------------------

CURRENT_USER_FRAGMENT = """
fragment CurrentUser on User {
  id
  karma
}
"""

NEWS_FEED_FRAGMENT = """
fragment NewsFeed on NewsItem {
  id
  commentCount
  creationTime
  hidden
  submitterId
  title
  url
  upvoteCount
  upvoted
}
"""

COMMENT_FRAGMENT = """
fragment CommentFields on Comment {
  id
  creationTime
  parent
  submitterId
  text
  upvoted
}
"""

FEED_QUERY = """
query feedNewsItems($type: FeedType!, $first: Int!, $skip: Int!) {
  feed(type: $type, first: $first, skip: $skip) {
    ...NewsFeed
  }
  me {
    ...CurrentUser
  }
}
""" + NEWS_FEED_FRAGMENT + CURRENT_USER_FRAGMENT


def _comment_tree(depth: int) -> str:
    # The level past *depth* carries ids only; see _fill_thread.
    if depth == 0:
        return "comments { id }"
    return "comments { ...CommentFields " + _comment_tree(depth - 1) + "}"


NEWS_ITEM_QUERY = """
query newsItem($id: Int!) {
  newsItem(id: $id) {
    ...NewsFeed
    text
    %s
  }
  me {
    ...CurrentUser
  }
}
""" % _comment_tree(COMMENT_TREE_DEPTH) + NEWS_FEED_FRAGMENT + COMMENT_FRAGMENT + CURRENT_USER_FRAGMENT

COMMENT_SUBTREE_QUERY = """
query commentSubtree($id: Int!) {
  comment(id: $id) {
    ...CommentFields
    %s
  }
}
""" % _comment_tree(COMMENT_TREE_DEPTH - 1) + COMMENT_FRAGMENT

USER_QUERY = """
query user($id: String!) {
  user(id: $id) {
    id
    about
    creationTime
    karma
    posts
  }
  me {
    ...CurrentUser
  }
}
""" + CURRENT_USER_FRAGMENT

ME_QUERY = """
query me {
  me {
    ...CurrentUser
  }
}
""" + CURRENT_USER_FRAGMENT

UPVOTE_MUTATION = """
mutation upvoteNewsItem($id: Int!) {
  upvoteNewsItem(id: $id) {
    id
    upvoteCount
  }
}
"""

HIDE_MUTATION = """
mutation hideNewsItem($id: Int!) {
  hideNewsItem(id: $id) {
    id
  }
}
"""

SUBMIT_MUTATION = """
mutation submitNewsItem($title: String!, $url: String, $text: String) {
  submitNewsItem(title: $title, url: $url, text: $text) {
    id
  }
}
"""


# ---------------------------------------------------------------------------
# Template helpers
# ---------------------------------------------------------------------------

def time_ago(millis: int | None) -> str:
    """Render a ``Date`` value the way HN does ("3 hours ago")."""
    if millis is None:
        return ""
    created = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    seconds = max(int((datetime.now(timezone.utc) - created).total_seconds()), 0)
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "just now"


def hostname(url: str | None) -> str:
    if not url:
        return ""
    host = urlparse(url).hostname or ""
    return host[4:] if host.startswith("www.") else host


templates.env.filters["time_ago"] = time_ago
templates.env.filters["hostname"] = hostname


def page_number(p: str | None) -> int:
    """Zero-based page number from the ``p`` query parameter; junk means 0."""
    try:
        number = int(p) if p is not None else 0
    except ValueError:
        return 0
    return max(number, 0)


def safe_goto(goto: str | None, default: str = "/news") -> str:
    """Only allow redirects to local paths."""
    if not goto:
        return default
    if not goto.startswith("/"):
        goto = "/" + goto
    if goto.startswith("//") or "\\" in goto or "://" in goto:
        return default
    return goto


def _login_redirect(goto: str) -> RedirectResponse:
    return RedirectResponse("/login?" + urlencode({"goto": goto.lstrip("/")}), status_code=303)


def _fits_graphql_int(value: int) -> bool:
    return -GRAPHQL_INT_MAX - 1 <= value <= GRAPHQL_INT_MAX


async def _fill_thread(context: GraphQLContext, comments: list[dict]) -> None:
    """
    Replace id-only reply stubs with their full subtrees, in place.

    One query nests ``COMMENT_TREE_DEPTH`` levels; each stub below that
    costs one more query, which brings the next ``COMMENT_TREE_DEPTH``.
    """
    filled = []
    for comment in comments:
        if "creationTime" not in comment:
            comment = (await execute(COMMENT_SUBTREE_QUERY, context, {"id": comment["id"]}))["comment"]
            if comment is None:
                continue
        await _fill_thread(context, comment.get("comments") or [])
        filled.append(comment)
    comments[:] = filled


# ---------------------------------------------------------------------------
# Feed pages
# ---------------------------------------------------------------------------

async def _render_feed(
    request: Request,
    db: AsyncSession,
    user_id: str | None,
    feed_type: FeedType,
    p: str | None,
    *,
    title: str,
    notice: str | None = None,
) -> HTMLResponse:
    per_page = settings.POSTS_PER_PAGE
    page = min(page_number(p), GRAPHQL_INT_MAX // per_page)
    skip = per_page * page

    data = await execute(
        FEED_QUERY,
        GraphQLContext(db=db, user_id=user_id),
        {"type": feed_type.value, "first": per_page, "skip": skip},
    )
    feed = data["feed"] or []
    items = [
        dict(item, rank=skip + index + 1)
        for index, item in enumerate(feed)
        if not item["hidden"]
    ]
    more_url = f"{request.url.path}?p={page + 1}" if len(feed) >= per_page else None

    return templates.TemplateResponse(
        request,
        "feed.html",
        {
            "title": title,
            "me": data["me"],
            "items": items,
            "notice": notice,
            "more_url": more_url,
            "current_url": request.url.path,
        },
    )


@router.get("/")
@router.get("/news")
async def top_page(
    request: Request,
    p: str | None = None,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    return await _render_feed(request, db, user_id, FeedType.top, p, title="Hacker News")


@router.get("/front")
async def front_page(
    request: Request,
    p: str | None = None,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    return await _render_feed(request, db, user_id, FeedType.top, p, title="Front Page")


@router.get("/newest")
async def newest_page(
    request: Request,
    p: str | None = None,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    return await _render_feed(request, db, user_id, FeedType.new, p, title="New Links")


@router.get("/best")
async def best_page(
    request: Request,
    p: str | None = None,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    return await _render_feed(request, db, user_id, FeedType.best, p, title="Top Links")


@router.get("/show")
async def show_page(
    request: Request,
    p: str | None = None,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    return await _render_feed(request, db, user_id, FeedType.show, p, title="Show")


@router.get("/shownew")
async def show_new_page(
    request: Request,
    p: str | None = None,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    return await _render_feed(
        request, db, user_id, FeedType.show, p, title="New Show", notice="shownew"
    )


@router.get("/ask")
async def ask_page(
    request: Request,
    p: str | None = None,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    return await _render_feed(request, db, user_id, FeedType.ask, p, title="Ask")


@router.get("/jobs")
async def jobs_page(
    request: Request,
    p: str | None = None,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    return await _render_feed(request, db, user_id, FeedType.job, p, title="Jobs")


# ---------------------------------------------------------------------------
# Item, user and static pages
# ---------------------------------------------------------------------------

@router.get("/item")
async def item_page(
    request: Request,
    id: int,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    if not _fits_graphql_int(id):
        raise HTTPException(status_code=404, detail="No such item.")
    context = GraphQLContext(db=db, user_id=user_id)
    data = await execute(NEWS_ITEM_QUERY, context, {"id": id})
    if data["newsItem"] is None:
        raise HTTPException(status_code=404, detail="No such item.")
    await _fill_thread(context, data["newsItem"]["comments"])
    return templates.TemplateResponse(
        request,
        "item.html",
        {
            "title": data["newsItem"]["title"],
            "me": data["me"],
            "item": data["newsItem"],
            "current_url": request.url.path,
        },
    )


@router.get("/user")
async def user_page(
    request: Request,
    id: str,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    data = await execute(USER_QUERY, GraphQLContext(db=db, user_id=user_id), {"id": id})
    if data["user"] is None:
        raise HTTPException(status_code=404, detail="No such user.")
    return templates.TemplateResponse(
        request,
        "user.html",
        {
            "title": f"Profile: {id}",
            "me": data["me"],
            "user": data["user"],
            "current_url": request.url.path,
        },
    )


@router.get("/showhn")
async def show_hn_rules_page(
    request: Request,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    data = await execute(ME_QUERY, GraphQLContext(db=db, user_id=user_id))
    return templates.TemplateResponse(
        request,
        "showhn.html",
        {"title": "Show HN Guidelines", "me": data["me"], "current_url": request.url.path},
    )


# ---------------------------------------------------------------------------
# Submissions and item actions
# ---------------------------------------------------------------------------

@router.get("/submit")
async def submit_page(
    request: Request,
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    if not user_id:
        return _login_redirect("submit")
    data = await execute(ME_QUERY, GraphQLContext(db=db, user_id=user_id))
    return templates.TemplateResponse(
        request,
        "submit.html",
        {"title": "Submit", "me": data["me"], "current_url": request.url.path, "form": {}},
    )


@router.post("/submit")
async def submit_news_item(
    request: Request,
    title: str = Form(""),
    url: str = Form(""),
    text: str = Form(""),
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    context = GraphQLContext(db=db, user_id=user_id)
    try:
        await execute(
            SUBMIT_MUTATION,
            context,
            {"title": title, "url": url or None, "text": text or None},
        )
    except NotAuthenticatedError:
        return _login_redirect("submit")
    except InvalidInputError as exc:
        data = await execute(ME_QUERY, context)
        return templates.TemplateResponse(
            request,
            "submit.html",
            {
                "title": "Submit",
                "me": data["me"],
                "current_url": "/submit",
                "error": str(exc),
                "form": {"title": title, "url": url, "text": text},
            },
            status_code=400,
        )
    return RedirectResponse("/newest", status_code=303)


@router.post("/vote")
async def vote(
    id: int = Form(...),
    goto: str = Form("/news"),
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    goto = safe_goto(goto)
    if not user_id:
        return _login_redirect(goto)
    if not _fits_graphql_int(id):
        return RedirectResponse(goto, status_code=303)
    try:
        await execute(UPVOTE_MUTATION, GraphQLContext(db=db, user_id=user_id), {"id": id})
    except NotAuthenticatedError:
        return _login_redirect(goto)
    return RedirectResponse(goto, status_code=303)


@router.post("/hide")
async def hide(
    id: int = Form(...),
    goto: str = Form("/news"),
    db: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
):
    goto = safe_goto(goto)
    if not user_id:
        return _login_redirect(goto)
    if not _fits_graphql_int(id):
        return RedirectResponse(goto, status_code=303)
    try:
        await execute(HIDE_MUTATION, GraphQLContext(db=db, user_id=user_id), {"id": id})
    except NotAuthenticatedError:
        return _login_redirect(goto)
    return RedirectResponse(goto, status_code=303)
