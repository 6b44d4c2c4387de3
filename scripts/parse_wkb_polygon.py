import argparse
import base64

from wkb_parser import decode

ap = argparse.ArgumentParser(description="Inspect the rings of a base64-encoded WKB polygon.")
ap.add_argument("path", help="File holding one base64 WKB value.")
args = ap.parse_args()

buf = base64.b64decode(open(args.path, "rb").read().strip())
result = decode(buf)
assert result.kind == "POLYGON", f"not a Polygon, type={result.kind}"

print("srid:", result.srid, "dimension:", result.dimension or "XY")
print("rings:", len(result.value))
for r, pts in enumerate(result.value):
    print(f"ring {r} points:", len(pts))
    print("first 3 pts:", pts[:3])
    print("last 3 pts:", pts[-3:])
    print("closed ring?", pts[0] == pts[-1] if pts else None)
