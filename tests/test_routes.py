from fastapi.testclient import TestClient

from main import app


def test_ayah_page_renders_presented_translation(seeded, reader_client, reader):
    response = reader_client.get("/quran/2/255")

    assert response.status_code == 200
    assert "اللہ کے سوا کوئی معبود نہیں" in response.text
    assert "Imported Urdu" in response.text
    assert "Bookmark this ayah" in response.text
    logged = seeded.execute("SELECT COUNT(*) FROM user_reading_log WHERE user_id = ?", (reader.id,)).fetchone()[0]
    assert logged == 1


def test_anonymous_pages(seeded):
    client = TestClient(app)

    assert client.get("/quran/").status_code == 200
    assert client.get("/quran/999").status_code == 404
    response = client.get("/study/dashboard", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/auth/login?next=/study/dashboard"
    assert client.post("/study/bookmarks/add", data={"ayah_id": 1}).status_code == 401


def test_register_logs_the_new_user_in(app_env):
    client = TestClient(app)
    response = client.post(
        "/auth/register",
        data={
            "username": "yusuf",
            "email": "yusuf@example.com",
            "password": "secret123",
            "confirm_password": "secret123",
        },
    )
    assert response.status_code == 200
    assert "Assalamu alaikum, yusuf" in response.text

    duplicate = TestClient(app).post(
        "/auth/register",
        data={
            "username": "yusuf",
            "email": "yusuf@example.com",
            "password": "secret123",
            "confirm_password": "secret123",
        },
    )
    assert duplicate.status_code == 400
    assert "already taken" in duplicate.text


def test_suggestion_moderation_and_default_flow(seeded, reader_client, admin_client, ayah_id):
    verse = ayah_id(1, 2)
    response = reader_client.post(
        "/suggest/translation",
        data={"ayah_id": verse, "text": "ساری تعریفیں اللہ ہی کے لیے", "version_name": "Reader Draft"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/quran/1/2?suggested=1"

    assert reader_client.get("/admin/moderation").status_code == 403
    queue = admin_client.get("/admin/moderation")
    assert "ساری تعریفیں" in queue.text
    item_id = seeded.execute("SELECT id FROM translations WHERE version_name = 'Reader Draft'").fetchone()[0]

    early = admin_client.post(f"/admin/content/translation/{item_id}/default", data={"make_default": "true"})
    assert early.status_code == 412

    approved = admin_client.post(
        f"/admin/moderation/translation/{item_id}", data={"decision": "approve"}, follow_redirects=False
    )
    assert approved.status_code == 303
    again = admin_client.post(f"/admin/moderation/translation/{item_id}", data={"decision": "reject"})
    assert again.status_code == 409

    promoted = admin_client.post(
        f"/admin/content/translation/{item_id}/default", data={"make_default": "true"}, follow_redirects=False
    )
    assert promoted.status_code == 303
    page = reader_client.get("/quran/1/2")
    assert "Reader Draft" in page.text
    defaults = seeded.execute(
        "SELECT COUNT(*) FROM translations WHERE ayah_id = ? AND is_default = 1", (verse,)
    ).fetchone()[0]
    assert defaults == 1


def test_admin_surah_tafsir_form(seeded, admin_client):
    response = admin_client.post(
        "/admin/content/new",
        data={
            "kind": "tafsir",
            "surah_id": 1,
            "ayah_number": "",
            "text": "سورۃ الفاتحہ کا تعارف",
            "version_name": "Intro",
            "make_default": "true",
        },
        follow_redirects=False,
    )
    assert response.status_code == 303
    row = seeded.execute("SELECT surah_id, ayah_id, status, is_default, author_kind FROM tafasir").fetchone()
    assert dict(row) == {"surah_id": 1, "ayah_id": None, "status": "approved", "is_default": 1, "author_kind": "admin"}
    assert "سورۃ الفاتحہ کا تعارف" in admin_client.get("/quran/1").text


def test_hifz_update_and_rating(seeded, reader_client, reader):
    response = reader_client.post(
        "/hifz/update",
        data={"surah_id": 2, "ayah_number": 255, "status": "review", "srs_level": "3"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    reader_client.post("/hifz/rate", data={"surah_id": 2, "ayah_number": 255, "rating": "easy"})
    row = seeded.execute(
        "SELECT status, srs_level FROM hifz_progress WHERE user_id = ?", (reader.id,)
    ).fetchone()
    assert (row["status"], row["srs_level"]) == ("review", 4)

    bad_level = reader_client.post(
        "/hifz/update", data={"surah_id": 2, "ayah_number": 255, "status": "review", "srs_level": "-2"}
    )
    assert bad_level.status_code == 400
    huge_level = reader_client.post(
        "/hifz/update",
        data={"surah_id": 2, "ayah_number": 255, "status": "review", "srs_level": "10000000000000000000"},
    )
    assert huge_level.status_code == 400
    missing = reader_client.post("/hifz/update", data={"surah_id": 2, "ayah_number": 300, "status": "review"})
    assert missing.status_code == 404

    page = reader_client.get("/hifz/")
    assert "Al-Baqarah 2:255" in page.text


def test_search_and_reports_pages(seeded, reader_client):
    reader_client.get("/quran/1/1")
    search = reader_client.get("/search/", params={"q": "الرَّحِيمِ"})
    assert search.status_code == 200
    assert "1 result" in search.text

    export = reader_client.get("/reports/export", params={"period": "daily"})
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/csv")
    assert "Ayahs Read" in export.text
    assert reader_client.get("/reports/", params={"period": "weekly"}).status_code == 422
