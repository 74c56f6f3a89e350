"""HTML email bodies for the inspection workflow.

Every builder takes a flat context dict (see services.effect_executor for the
keys) and returns an HTML fragment; render() wraps it in the shared layout.
"""
from __future__ import annotations

from html import escape
from typing import Any, Callable


def _v(ctx: dict, key: str, default: str = "N/A") -> str:
    value = ctx.get(key)
    if value is None or value == "":
        return default
    return escape(str(value))


def _schedule_block(ctx: dict, title: str, background: str) -> str:
    return f"""
    <ul style="background-color: {background}; padding: 20px; border-radius: 10px; margin-top: 15px;">
      <p><strong>{title}</strong></p>
      <li><strong>Date:</strong> {_v(ctx, "inspection_date")}</li>
      <li><strong>Time:</strong> {_v(ctx, "inspection_time")}</li>
      <li><strong>Mode:</strong> {_v(ctx, "inspection_mode")}</li>
    </ul>
    """


def _property_block(ctx: dict, background: str = "#FAFAFA") -> str:
    return f"""
    <ul style="background-color: {background}; padding: 20px; border-radius: 10px; margin-top: 15px;">
      <p><strong>Property Details:</strong></p>
      <li><strong>Type:</strong> {_v(ctx, "property_type")}</li>
      <li><strong>Location:</strong> {_v(ctx, "location")}</li>
    </ul>
    """


def _sign_off(ctx: dict) -> str:
    return f'<p style="margin-top: 10px;">Warm regards,<br/>The {_v(ctx, "brand", "InspectionDesk")} Team</p>'


def _offer_lines(ctx: dict) -> str:
    lines = [f"<li><strong>Listed Price:</strong> {_v(ctx, 'price')}</li>"]
    if ctx.get("is_negotiating"):
        lines.append(f"<li><strong>Your Offer:</strong> {_v(ctx, 'negotiation_price')}</li>")
    if ctx.get("letter_of_intention"):
        lines.append(
            f'<li><strong>Letter of Intention:</strong> <a href="{_v(ctx, "letter_of_intention")}">view document</a></li>'
        )
    return "\n".join(lines)


def inspection_offer_buyer(ctx: dict) -> str:
    return f"""
    <p>Dear {_v(ctx, "recipient_name")},</p>
    <p style="margin-top: 10px;">
      Your inspection request has been reviewed and forwarded to the property owner,
      {_v(ctx, "seller_name")}. We will let you know as soon as they respond.
    </p>
    {_property_block(ctx)}
    <ul style="background-color: #E6F7FF; padding: 20px; border-radius: 10px; margin-top: 15px;">
      <p><strong>Offer Summary:</strong></p>
      {_offer_lines(ctx)}
    </ul>
    {_schedule_block(ctx, "Requested Inspection Schedule:", "#FFF4F4")}
    {_sign_off(ctx)}
    """


def inspection_request_seller(ctx: dict) -> str:
    link = ""
    if ctx.get("response_link"):
        link = f"""
        <p style="margin-top: 15px;">
          <a href="{_v(ctx, "response_link")}" style="color: #FF2539;">Respond to this request</a>
        </p>
        """
    return f"""
    <p>Dear {_v(ctx, "recipient_name")},</p>
    <p style="margin-top: 10px;">
      {_v(ctx, "buyer_name")} has requested an inspection of your property.
    </p>
    {_property_block(ctx)}
    <ul style="background-color: #E6F7FF; padding: 20px; border-radius: 10px; margin-top: 15px;">
      <p><strong>Offer Summary:</strong></p>
      {_offer_lines(ctx)}
    </ul>
    {_schedule_block(ctx, "Requested Inspection Schedule:", "#FFF4F4")}
    {link}
    {_sign_off(ctx)}
    """


def inspection_rejected_buyer(ctx: dict) -> str:
    return f"""
    <p>Dear {_v(ctx, "recipient_name")},</p>
    <p style="margin-top: 10px;">{_v(ctx, "rejection_reason")}</p>
    {_property_block(ctx, "#FDEDED")}
    {_schedule_block(ctx, "Attempted Inspection Schedule:", "#FAFAFA")}
    {_sign_off(ctx)}
    """


def loi_rejected_buyer(ctx: dict) -> str:
    document = ""
    if ctx.get("letter_of_intention"):
        document = f"""
        <ul style="background-color: #FAFAFA; padding: 25px 20px; border-radius: 10px; margin-top: 15px;">
          <p><strong>Submitted LOI Document:</strong></p>
          <li><a href="{_v(ctx, "letter_of_intention")}" style="color: #FF2539;">Click here</a> to view your uploaded LOI document</li>
        </ul>
        """
    return f"""
    <p>Dear {_v(ctx, "recipient_name")},</p>
    <p style="margin-top: 10px;">
      After reviewing the submitted <strong>Letter of Intention (LOI)</strong>, we regret to
      inform you that it was not approved.
    </p>
    <p style="margin-top: 10px;"><strong>Reason:</strong> {_v(ctx, "reason")}</p>
    {_property_block(ctx, "#FDEDED")}
    {document}
    {_schedule_block(ctx, "Attempted Inspection Schedule:", "#FAFAFA")}
    <p style="margin-top: 15px;">
      You are welcome to upload a corrected document and submit a new request.
    </p>
    {_sign_off(ctx)}
    """


def field_agent_assigned(ctx: dict) -> str:
    return f"""
    <p>Dear {_v(ctx, "recipient_name")},</p>
    <p style="margin-top: 10px;">
      You have been <strong>assigned</strong> to conduct a property inspection.
    </p>
    {_property_block(ctx)}
    {_schedule_block(ctx, "Inspection Schedule:", "#E6F7FF")}
    <p style="margin-top: 15px;">
      Please review the details and ensure you are available and prepared for the inspection.
    </p>
    {_sign_off(ctx)}
    """


def field_agent_removed(ctx: dict) -> str:
    return f"""
    <p>Dear {_v(ctx, "recipient_name")},</p>
    <p style="margin-top: 10px;">
      You have been <strong>removed</strong> from the scheduled property inspection below.
    </p>
    {_property_block(ctx)}
    {_schedule_block(ctx, "Inspection Schedule:", "#FFF4F4")}
    <p style="margin-top: 15px;">
      If you believe this change was made in error, please contact the operations team.
    </p>
    {_sign_off(ctx)}
    """


def _contact_block(ctx: dict, who: str, title: str) -> str:
    return f"""
    <ul style="background-color: #E6F7FF; padding: 20px; border-radius: 10px; margin-top: 15px;">
      <p><strong>{title}</strong></p>
      <li><strong>Name:</strong> {_v(ctx, who + "_name")}</li>
      <li><strong>Email:</strong> {_v(ctx, who + "_email")}</li>
      <li><strong>Phone:</strong> {_v(ctx, who + "_phone", "Not provided")}</li>
    </ul>
    """


def buyer_details_to_seller(ctx: dict) -> str:
    return f"""
    <p>Dear {_v(ctx, "recipient_name")},</p>
    <p style="margin-top: 10px;">
      Below are the details of the <strong>buyer</strong> interested in inspecting your property.
    </p>
    {_contact_block(ctx, "buyer", "Buyer Information:")}
    {_property_block(ctx)}
    {_schedule_block(ctx, "Inspection Schedule:", "#FFF4F4")}
    {_sign_off(ctx)}
    """


def seller_details_to_buyer(ctx: dict) -> str:
    return f"""
    <p>Dear {_v(ctx, "recipient_name")},</p>
    <p style="margin-top: 10px;">
      Below are the details of the <strong>seller</strong> for the property you are scheduled to inspect.
    </p>
    {_contact_block(ctx, "seller", "Seller Information:")}
    {_property_block(ctx)}
    {_schedule_block(ctx, "Inspection Schedule:", "#FFF4F4")}
    {_sign_off(ctx)}
    """


def general_layout(body: str, ctx: dict) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; color: #1f2937;">
      <div style="padding: 20px 0; font-size: 20px; font-weight: 600;">{_v(ctx, "brand", "InspectionDesk")}</div>
      <div style="font-size: 15px; line-height: 1.5;">{body}</div>
    </div>
    """


TEMPLATES: dict[str, Callable[[dict], str]] = {
    "inspection_offer_buyer": inspection_offer_buyer,
    "inspection_request_seller": inspection_request_seller,
    "inspection_rejected_buyer": inspection_rejected_buyer,
    "loi_rejected_buyer": loi_rejected_buyer,
    "field_agent_assigned": field_agent_assigned,
    "field_agent_removed": field_agent_removed,
    "buyer_details_to_seller": buyer_details_to_seller,
    "seller_details_to_buyer": seller_details_to_buyer,
}


def render(template: str, ctx: dict[str, Any]) -> str:
    try:
        builder = TEMPLATES[template]
    except KeyError:
        raise ValueError(f"unknown email template: {template}") from None
    return general_layout(builder(ctx), ctx)
