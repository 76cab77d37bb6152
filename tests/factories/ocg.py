"""Builders for OCG verification result emails."""

EMPLOYER_SECTION = """
<tbody>
  <tr><th>Employer ID</th><td>WWC0012345E</td></tr>
  <tr><th>Employer Name</th><td>Little Sprouts Nanny Agency</td></tr>
  <tr><th>Verification Date/Time</th><td>02/03/2026 09:15 AM</td></tr>
</tbody>
"""


def ocg_row(
    family_name: str = "Wright",
    reference_number: str = "WWC1234567A",
    result_status: str = "Cleared",
    expiry: str = "31/01/2029",
    result_text: str = "Cleared to work with children",
) -> tuple[str, str, str, str, str]:
    return (family_name, reference_number, result_status, expiry, result_text)


def ocg_email_html(*rows: tuple[str, str, str, str, str]) -> str:
    """An OCG results email with one data row per tuple."""
    data_rows = "\n".join(
        "<tr>" + "".join(f"<td>{cell}</td>" for cell in row) + "</tr>" for row in rows
    )
    return f"""
<html><body>
<p>Dear Employer,</p>
<table>{EMPLOYER_SECTION}</table>
<table>
<tbody>
  <tr><th colspan="5">Verification Results</th></tr>
  <tr>
    <th>Family Name</th><th>Reference Number</th><th>Result Status</th>
    <th>Expiry Date</th><th>Result</th>
  </tr>
  {data_rows}
</tbody>
</table>
</body></html>
"""
