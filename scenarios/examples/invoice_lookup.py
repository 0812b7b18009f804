"""
Invoice lookup - example scenario.

Logs into a billing portal, finds the invoice row by its label in a table
whose rows are numbered #row-2, #row-4, ..., opens it and captures the page.
"""

from ..base import Scenario, Step


INVOICE_LOOKUP = Scenario(
    name="invoice-lookup",
    description="Find the invoice row by label and capture the invoice page",
    start_url="https://billing.example.com/login",
    steps=[
        Step("write", {"selector": "input[name='email']", "value": "demo@example.com"}),
        Step("write", {"selector": "input[name='password']", "value": "demo"}),
        Step("click_and_wait", {"selector": "button[type='submit']"}),
        Step("hover", {"selector": "#menu-billing"}),
        Step("click", {"selector": "#menu-billing a.invoices"}),
        Step(
            "search",
            {
                "template": "#invoices tr#row-{n}",
                "placeholder": "{n}",
                "generator": "even",
                "target": "Invoice 2024",
            },
            save_as="invoice_row",
        ),
        Step("get_text", {"selector": "$invoice_row"}, save_as="invoice_label"),
        Step("find_link", {"selector": "#invoices a", "includes": "/invoices/2024"}, save_as="invoice_url"),
        Step("goto", {"url": "$invoice_url"}),
        Step("screenshot", {"x": 0, "y": 120, "path": "screenshots/invoice.png"}, save_as="invoice_image"),
    ],
)
