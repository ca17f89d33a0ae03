PNG_BYTES = b"\x89PNG\r\n\x1a\n"


def upload(client, name="photo.png", content=PNG_BYTES, content_type="image/png"):
    return client.post("/api/upload", files={"image": (name, content, content_type)})


def stored_files(upload_dir):
    return sorted(p.name for p in upload_dir.iterdir() if p.name != ".gitkeep")
