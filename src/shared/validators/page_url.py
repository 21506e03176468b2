"""
Target list page URL validation.

验收标准：
- 仅接受 http:// 或 https:// 且带主机名的 URL
- 不允许锚点（# 后的内容）、空白字符、内嵌凭证（user:pass@）
- 合法输入返回规范化 URL（scheme/host 小写，去除首尾空白）
- 非法输入返回可理解的错误原因
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse, urlunparse


ALLOWED_SCHEMES = ("http", "https")


@dataclass(frozen=True)
class ValidationResult:
    """URL 校验结果"""

    valid: bool
    url: Optional[str] = None
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


def validate_page_url(url: Optional[str]) -> ValidationResult:
    """
    校验收藏列表页 URL 并返回规范化结果。

    Args:
        url: 待校验的 URL 字符串

    Returns:
        ValidationResult: 包含 valid、url（成功时）、error（失败时）
    """
    if not url or not url.strip():
        return ValidationResult(valid=False, error="URL 不能为空")

    url = url.strip()

    if any(ch.isspace() for ch in url):
        return ValidationResult(valid=False, error="URL 不能包含空白字符")

    try:
        parsed = urlparse(url)
    except ValueError:
        return ValidationResult(valid=False, error="URL 格式无效")

    scheme = parsed.scheme.lower()
    if not scheme:
        return ValidationResult(valid=False, error="URL 缺少协议，应为 https://")
    if scheme not in ALLOWED_SCHEMES:
        return ValidationResult(
            valid=False,
            error=f"不支持的协议 {parsed.scheme}://，请使用 https://",
        )

    if not parsed.hostname:
        return ValidationResult(valid=False, error="URL 缺少主机名")

    if parsed.username or parsed.password:
        return ValidationResult(valid=False, error="URL 不能包含内嵌凭证（user:pass@）")

    if parsed.fragment:
        return ValidationResult(valid=False, error="URL 不能包含锚点（# 后的内容）")

    normalized = urlunparse(
        (
            scheme,
            parsed.netloc.lower(),
            parsed.path or "/",
            parsed.params,
            parsed.query,
            "",
        )
    )
    return ValidationResult(valid=True, url=normalized)
