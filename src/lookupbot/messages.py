"""User-facing message templates."""

from __future__ import annotations

TEMPLATES: dict[str, str] = {
    # Admission
    "admin_only": "❌ This command is only available to administrators.",
    "approval_required": (
        "❌ You need to be approved to use this command. "
        "Use /register to submit your request."
    ),
    "insufficient_credits": (
        "❌ Insufficient credits! You need at least {cost} credit(s) to use this command.\n"
        "💳 Current balance: {balance} credits. Check it any time with /credits"
    ),
    "membership_required": "🔒 You must join our channel to use this bot.",
    "membership_lost": "❌ You left the channel.\n\nJoin again to continue.",
    "unknown_command": "❌ Unknown command. Use /help to see what is available.",
    # Dispatcher outcomes
    "refund_note": "💳 {cost} credit(s) refunded",
    "unexpected_failure": "❌ An error occurred while processing your request.",
    "collaborator_failure": "❌ The service did not return a usable result. Please try again later.",
    "delivery_failed": "❌ The result could not be delivered.",
    # Registration
    "already_approved": "✅ You are already registered and approved.",
    "already_pending": (
        "⏳ Your registration is already pending approval.\n\n"
        "Please wait for the admin to review your request."
    ),
    "registration_submitted": (
        "📋 Registration request submitted!\n\n"
        "⏳ An admin will review it shortly. You will be notified once approved."
    ),
    "registration_auto_approved": (
        "🎉 Registration successful!\n"
        "✅ Your account is automatically approved with {credits} starting credits."
    ),
    "registration_join_first": (
        "❌ Please join the channel first, then press Verify and send /register again."
    ),
    "admin_new_request": (
        "🆕 *New Registration Request*\n\n"
        "👤 User: {mention}\n"
        "🆔 ID: `{identity}`\n\n"
        "Use the buttons below or /approve {identity} / /reject {identity}."
    ),
    "admin_new_user": "🆕 New user registered\n👤 {mention}\n🆔 {identity}",
    "registration_approved": (
        "🎉 *Registration Approved!* 🎉\n\n"
        "💎 Welcome benefits:\n"
        "• {credits} starting credits 🪙\n"
        "• Full access to all lookup tools\n\n"
        "Use /help for instructions and /credits to see your balance."
    ),
    "registration_rejected": (
        "❌ *Registration Rejected*\n\n"
        "Your registration request has been rejected.\n"
        "Contact the admin for more information. You may submit a new request if needed."
    ),
    "request_not_found": "❌ Registration request not found.",
    # Membership callback
    "verify_not_owner": "❌ You can only verify your own membership.",
    "verify_already": "✅ You have already verified your channel membership!",
    "verify_success": (
        "✅ *Verification Successful*\n\n"
        "You can now use /register to submit your registration request."
    ),
    "verify_failed": (
        "❌ *Verification Failed*\n\n"
        "You need to join our channel before you can register.\n"
        "Join with the button below, then press Verify Membership again."
    ),
    # Admin notifications to affected users
    "credits_received": (
        "🎉 *Credits Received!*\n\n"
        "💰 Amount: +{amount} credits\n"
        "💳 New Balance: {balance} credits"
    ),
    "credits_deducted": (
        "💸 *Credits Deducted*\n\n"
        "💰 Amount: -{amount} credits\n"
        "💳 New Balance: {balance} credits"
    ),
    "credits_set": (
        "💳 *Credits Updated*\n\n"
        "💰 Change: {delta:+d} credits\n"
        "💳 New Balance: {balance} credits"
    ),
    "premium_granted": (
        "🎉 *Premium Status Granted!*\n\n"
        "💎 Unlimited queries: lookups no longer consume credits."
    ),
    "premium_revoked": (
        "💳 *Premium Status Revoked*\n\n"
        "Your account is back to standard features."
    ),
    "admin_granted": (
        "👑 *Admin Access Granted!*\n\n"
        "Use /admin to view all admin commands."
    ),
    "admin_revoked": "🚫 *Admin Access Removed*\n\nYour account is back to a regular user.",
    "account_reset": (
        "🔄 *Account Reset*\n\n"
        "Your credits, query count and premium status have been reset by an admin."
    ),
    "lucky_winner": (
        "🍀 *Lucky Draw Winner!* 🍀\n\n"
        "💰 You won {amount} credits!\n"
        "💳 New Balance: {balance} credits"
    ),
    "broadcast": "📢 *Broadcast Message*\n\n{message}",
    "announcement": "🎭 *{title}* 🎭\n\n{message}",
}


def get_message(key: str, **kwargs: object) -> str:
    """Return the message template for ``key`` with optional formatting."""
    template = TEMPLATES.get(key, key)
    return template.format(**kwargs) if kwargs else template
