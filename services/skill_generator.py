"""
Skill file generator.

Renders the AaaS.md "skill" document an autonomous agent uses to promote and
fulfil a single product: YAML front matter with identity, chain and rate-limit
metadata, followed by Markdown sections (product info, offer, distribution
rules, content templates, FAQ, payment/fulfilment endpoints, guardrails).

Output depends only on the product fields and the SkillConfig, so the same
inputs always produce the same bytes. Skills exist only for activated
products.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import List, Optional

from domain.errors import PreconditionError
from domain.product import Product, TemplateKind

SKILL_KIND = "Autonomous Agents as Sellers"
CHAIN_NAME = "arc-testnet"
CHAIN_LABEL = "Arc Testnet"
CURRENCY = "USDC"

DEFAULT_SUBMOLT = "aaas"
ALLOWED_SUBMOLTS = ("aaas", "general")

# Moltbook enforces roughly one post per 30 minutes across all submolts.
MIN_MINUTES_BETWEEN_POSTS = 30
MAX_COMMENTS_PER_HOUR = 6

SECTION_BREAK = "\n\n---\n\n"

_TEMPLATE_HEADINGS = (
    (TemplateKind.INITIAL, f"## Launch Post (FIRST post — /m/{DEFAULT_SUBMOLT})"),
    (TemplateKind.FOLLOWUP, "## Syndication Post (after launch — /m/general)"),
    (TemplateKind.RESPONSE, "## Response Template (when asked)"),
)

_RATE_LIMIT_NOTE = (
    f"> Rate limit: do not post more often than once every "
    f"{MIN_MINUTES_BETWEEN_POSTS} minutes (global)."
)


@dataclass(frozen=True, slots=True)
class SkillConfig:
    """Deployment values baked into every skill file."""
    base_url: str
    contract_address: str
    chain_id: int


def skill_filename(product: Product) -> str:
    return f"{product.hashtag}.md"


def payment_url(product: Product, config: SkillConfig) -> str:
    return f"{config.base_url}/pay/{product.product_id}"


def _front_matter(product: Product, config: SkillConfig) -> str:
    submolts = ", ".join(ALLOWED_SUBMOLTS)
    lines = [
        "---",
        f"name: {product.hashtag}",
        f"version: {product.skill_version}",
        f"kind: {SKILL_KIND}",
        "",
        "# Canonical IDs",
        f"product_id: {product.product_id}",
        f"blockchain_link_id: {product.blockchain_link_id}",
        "",
        "# Network",
        f"chain: {CHAIN_NAME}",
        f"chain_id: {config.chain_id}",
        f"currency: {CURRENCY}",
        f'price: "{product.price_usdc}"',
        f"contract_address: {config.contract_address}",
        "",
        "# Tracking",
        '# Store WITHOUT the leading "#". Agents must render it as "#{required_hashtag}".',
        f"required_hashtag: {product.hashtag}",
        "",
        "# Runtime / environment",
        "# IMPORTANT: localhost links only work on the seller's machine.",
        "# Replace base_url with your public domain before distributing this skill.",
        f"base_url: {config.base_url}",
        "",
        "# Moltbook distribution config",
        f"default_submolt: {DEFAULT_SUBMOLT}",
        f"allowed_submolts: [{submolts}]",
        "",
        "# Rate limits (treat as HARD caps)",
        f"moltbook_min_minutes_between_posts: {MIN_MINUTES_BETWEEN_POSTS}",
        f"moltbook_max_comments_per_hour: {MAX_COMMENTS_PER_HOUR}",
        "---",
    ]
    return "\n".join(lines)


def _product_information(product: Product) -> str:
    lines = ["# Product Information", "", f"**Name:** {product.name}"]
    if product.one_liner:
        lines.append(f"**Tagline:** {product.one_liner}")
    if product.category:
        lines.append(f"**Category:** {product.category.value}")
    if product.tags:
        lines.append(f"**Tags:** {', '.join(product.tags)}")

    description = (product.description or "").strip()
    if description:
        lines.extend(["", "## Description", description])

    return "\n".join(lines)


def _sales_offer(product: Product, config: SkillConfig) -> str:
    return "\n".join([
        "# Sales Offer",
        "",
        f"**Price:** {product.price_usdc} {CURRENCY}",
        f"**Chain:** {CHAIN_LABEL} (Chain ID: {config.chain_id})",
        f"**Contract:** {config.contract_address}",
        f"**Blockchain Link ID:** {product.blockchain_link_id}",
        "",
        "## Payment Page",
        f"[Buy / Checkout]({payment_url(product, config)})",
        "",
        "> If this skill will be used by anyone other than the seller locally, "
        "**base_url must be public** (not localhost).",
    ])


def _distribution_guidelines(product: Product) -> str:
    submolts = ", ".join(ALLOWED_SUBMOLTS)
    return "\n".join([
        "# Distribution Guidelines",
        "",
        "## IMPORTANT: Hashtag Tracking",
        "Always include this hashtag in ALL Moltbook posts:",
        f"`#{product.hashtag}`",
        "",
        "This tag is used for tracking. Do not vary spelling/case.",
        "",
        "## Moltbook Posting Rules",
        f"- **Default Submolt:** /m/{DEFAULT_SUBMOLT} (subscribe and post here first)",
        f"- **Allowed Submolts:** {submolts}",
        f"- **Posting cadence:** max 1 post per {MIN_MINUTES_BETWEEN_POSTS} minutes globally (across all submolts)",
        f"- **Comments:** max {MAX_COMMENTS_PER_HOUR} per hour",
        "",
        "## First Action Sequence (required)",
        f"1. Subscribe to /m/{DEFAULT_SUBMOLT} (if not already subscribed).",
        f"2. Create the launch post in /m/{DEFAULT_SUBMOLT} with `#{product.hashtag}`.",
        f"3. After {MIN_MINUTES_BETWEEN_POSTS} minutes, optionally syndicate to /m/general "
        "(and only other allowed communities).",
        "",
        "## Allowed Channels",
        f"- Moltbook posts (max 1 per {MIN_MINUTES_BETWEEN_POSTS} minutes globally)",
        f"- Moltbook comments (max {MAX_COMMENTS_PER_HOUR}/hour, must be helpful and specific)",
        "- Direct messages (only when asked by a human)",
        "",
        "## Prohibited Channels",
        "- Mass DMs",
        "- Replies on unrelated threads (no hijacking)",
        "- Anything that looks like engagement bait",
        "- Spamming the same content repeatedly",
        "- Sharing fulfillment/download links before payment is confirmed",
    ])


def _custom_templates(product: Product) -> str:
    grouped = product.templates_by_kind()
    lines = ["# Content Templates"]

    for kind, heading in _TEMPLATE_HEADINGS:
        contents = grouped.get(kind)
        if not contents:
            continue
        lines.extend(["", heading])
        for i, content in enumerate(contents, start=1):
            lines.extend(["", f"**Template {i}:**", content])
        if kind is TemplateKind.FOLLOWUP:
            lines.extend(["", _RATE_LIMIT_NOTE])

    return "\n".join(lines)


def _default_templates(product: Product, config: SkillConfig) -> str:
    url = payment_url(product, config)
    tagline = product.one_liner or "Check it out!"
    category = product.category.value if product.category else "digital products"
    price = f"{product.price_usdc} {CURRENCY}"

    return "\n".join([
        "# Content Templates (ready to use)",
        "",
        _TEMPLATE_HEADINGS[0][1],
        f"**Title:** {product.name}",
        "",
        "**Content:**",
        tagline,
        "",
        f"Price: {price}",
        f"Checkout: {url}",
        "",
        f"#{product.hashtag}",
        "",
        _TEMPLATE_HEADINGS[1][1],
        f"**Title:** {product.name}",
        "",
        "**Content:**",
        f"Looking for {category}?",
        f"{product.name} — {tagline}",
        "",
        f"Checkout: {url}",
        "",
        f"#{product.hashtag}",
        "",
        _RATE_LIMIT_NOTE,
        "",
        _TEMPLATE_HEADINGS[2][1],
        f"Thanks for asking — {product.name} is available for {price}.",
        "",
        f"Checkout: {url}",
        "",
        "If you share your context (what you're building + your stack), "
        "I'll point you at the fastest path.",
    ])


def _faq(product: Product) -> Optional[str]:
    if not product.faq_blocks:
        return None

    lines = ["# FAQ"]
    for faq in product.faq_blocks:
        lines.extend(["", f"## {faq.question}", faq.answer])
    return "\n".join(lines)


def _payment_and_fulfillment(product: Product, config: SkillConfig) -> str:
    return "\n".join([
        "# Payment & Fulfillment",
        "",
        "## Payment Link",
        payment_url(product, config),
        "",
        "## Status Check Endpoint",
        f"`GET {config.base_url}/api/v1/orders/{{order_id}}/status`",
        "",
        "Expected response:",
        "```json",
        "{",
        '  "order_id": "...",',
        '  "status": "completed",',
        '  "tx_hash": "0x...",',
        '  "payment_confirmed_at": "...",',
        f'  "product_name": {json.dumps(product.name)},',
        '  "download_url": "https://..."',
        "}",
        "```",
        "",
        "## Fulfillment Rules (agent)",
        '- Always verify `status: "completed"` before sharing `download_url` or access instructions.',
        "- If the order is not completed, ask the buyer to complete payment and do not leak fulfillment.",
    ])


def _agent_guardrails(product: Product) -> str:
    return "\n".join([
        "# Agent Guardrails",
        "",
        "## Required Behaviors",
        "- Verify payment before fulfillment",
        f"- Respect rate limits ({MIN_MINUTES_BETWEEN_POSTS} min between posts globally; "
        f"{MAX_COMMENTS_PER_HOUR} comments/hour)",
        "- Use templates for consistency",
        f"- Always include `#{product.hashtag}`",
        "",
        "## Prohibited Behaviors",
        "- Spamming channels",
        "- Making false claims about the product",
        "- Bypassing payment flow",
        "- Sharing download links without payment confirmation",
        "- Asking humans for seed phrases / private keys / 2FA codes",
    ])


def generate_skill(product: Product, config: SkillConfig) -> str:
    """
    Render the skill document for an activated product.

    Raises:
        PreconditionError: product has no blockchain_link_id
    """

    if not product.is_activated:
        raise PreconditionError(
            f"Product {product.product_id} not activated on blockchain"
        )

    if product.marketing_templates:
        templates = _custom_templates(product)
    else:
        templates = _default_templates(product, config)

    body_sections: List[str] = [
        _product_information(product),
        _sales_offer(product, config),
        _distribution_guidelines(product),
    ]

    promo = templates
    faq = _faq(product)
    if faq:
        promo = f"{templates}\n\n{faq}"
    body_sections.append(promo)

    body_sections.extend([
        _payment_and_fulfillment(product, config),
        _agent_guardrails(product),
    ])

    return _front_matter(product, config) + "\n\n" + SECTION_BREAK.join(body_sections) + "\n"


__all__ = [
    "ALLOWED_SUBMOLTS",
    "MAX_COMMENTS_PER_HOUR",
    "MIN_MINUTES_BETWEEN_POSTS",
    "SkillConfig",
    "generate_skill",
    "payment_url",
    "skill_filename",
]
