import eziges


def main() -> None:
    doc = eziges.read("tests/models/line.iges")
    print(f"file: {doc.global_parameters.file_name} (IGES version {doc.version})")

    group = doc.primitives()
    print(f"primitives: {len(group)}")
    for primitive in group:
        print(primitive.kind.value, primitive.source, primitive.to_points())

    for diagnostic in doc.diagnostics + group.diagnostics:
        print("diagnostic:", diagnostic)


if __name__ == "__main__":
    main()
