import eziges


result = eziges.to_dxf(
    "tests/models/line.iges",
    "/tmp/line_out.dxf",
    types="LINE",
    dxf_version="R2010",
)
print(result)
