CR = b"\r"
LF = b"\n"
CRLF = CR + LF
