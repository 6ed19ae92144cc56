"""Integration tests for OpenLibrary-backed search and author info routes."""

AUTHOR_SEARCH = {
    "numFound": 1,
    "docs": [
        {
            "key": "OL34184A",
            "name": "Roald Dahl",
            "birth_date": "13 September 1916",
            "top_work": "Charlie and the Chocolate Factory",
            "work_count": 642,
        }
    ],
}

AUTHOR_WORKS = {
    "size": 2,
    "entries": [
        {
            "key": "/works/OL45804W",
            "title": "Fantastic Mr Fox",
            "covers": [6498519],
            "first_publish_date": "1970",
            "description": {"type": "/type/text", "value": "Three farmers and a fox."},
        },
        {"key": "/works/OL45883W", "title": "Matilda", "covers": [-1], "first_publish_year": 1988},
    ],
}

TITLE_SEARCH = {
    "numFound": 1,
    "start": 0,
    "docs": [
        {
            "key": "/works/OL45804W",
            "title": "Fantastic Mr Fox",
            "author_name": ["Roald Dahl"],
            "first_publish_year": 1970,
            "isbn": ["9780140328721", "0140328726"],
            "cover_i": 6498519,
            "language": ["eng"],
            "publisher": ["Puffin", "Knopf"],
        }
    ],
}


class TestOpenLibrarySearch:
    """GET /api/books/search/openlibrary."""

    def test_requires_query(self, client) -> None:
        resp = client.get("/api/books/search/openlibrary")

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "query_required"

    def test_title_search_is_default(self, client, openlibrary_stub) -> None:
        openlibrary_stub.add("/search.json", TITLE_SEARCH)

        resp = client.get("/api/books/search/openlibrary", params={"query": "fantastic mr fox"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 1
        assert body["limit"] == 20
        book = body["books"][0]
        assert book["author"] == "Roald Dahl"
        assert book["isbn"] == "9780140328721"
        assert book["coverId"] == 6498519
        assert book["cover"] == "https://covers.openlibrary.org/b/id/6498519-M.jpg"
        assert book["url"] == "https://openlibrary.org/works/OL45804W"
        assert openlibrary_stub.requests[0].url.params["limit"] == "20"

    def test_title_search_respects_limit(self, client, openlibrary_stub) -> None:
        openlibrary_stub.add("/search.json", TITLE_SEARCH)

        resp = client.get("/api/books/search/openlibrary", params={"query": "fox", "limit": 5})

        assert resp.json()["limit"] == 5
        assert openlibrary_stub.requests[0].url.params["limit"] == "5"

    def test_isbn_search(self, client, openlibrary_stub) -> None:
        openlibrary_stub.add(
            "/api/books",
            {
                "ISBN:9780140328721": {
                    "title": "Fantastic Mr Fox",
                    "authors": [{"name": "Roald Dahl"}],
                    "publish_date": "October 1, 1988",
                    "publishers": [{"name": "Puffin"}],
                    "subjects": [{"name": "Foxes"}, {"name": "Farmers"}],
                    "cover": {"medium": "https://covers.openlibrary.org/b/id/1-M.jpg"},
                }
            },
        )

        resp = client.get(
            "/api/books/search/openlibrary",
            params={"query": "978-0140328721", "type": "isbn"},
        )

        book = resp.json()["book"]
        assert resp.status_code == 200
        assert book["isbn"] == "9780140328721"
        assert book["publishYear"] == 1988
        assert book["publisher"] == "Puffin"
        assert book["subjects"] == ["Foxes", "Farmers"]
        assert book["url"] == "https://openlibrary.org/isbn/9780140328721"

    def test_isbn_search_without_result(self, client, openlibrary_stub) -> None:
        openlibrary_stub.add("/api/books", {})

        resp = client.get("/api/books/search/openlibrary", params={"query": "123", "type": "isbn"})

        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "openlibrary_no_results"

    def test_author_search(self, client, openlibrary_stub) -> None:
        openlibrary_stub.add("/search/authors.json", AUTHOR_SEARCH)
        openlibrary_stub.add("/authors/OL34184A/works.json", AUTHOR_WORKS)

        resp = client.get("/api/books/search/openlibrary", params={"query": "dahl", "type": "author"})

        body = resp.json()
        assert resp.status_code == 200
        assert body["author"] == "Roald Dahl"
        assert body["total"] == 2
        assert body["books"][0]["firstPublishYear"] == 1970
        assert body["books"][0]["description"] == "Three farmers and a fox."
        assert body["books"][1]["cover"] is None
        assert body["books"][1]["firstPublishYear"] == 1988

    def test_unknown_author(self, client, openlibrary_stub) -> None:
        openlibrary_stub.add("/search/authors.json", {"numFound": 0, "docs": []})

        resp = client.get("/api/books/search/openlibrary", params={"query": "zzz", "type": "author"})

        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "openlibrary_author_not_found"

    def test_budget_exhaustion_returns_429(self, client, openlibrary_stub) -> None:
        openlibrary_stub.add("/search.json", TITLE_SEARCH)

        statuses = [
            client.get("/api/books/search/openlibrary", params={"query": f"title {i}"}).status_code
            for i in range(6)
        ]
        blocked = client.get("/api/books/search/openlibrary", params={"query": "title 99"})

        assert statuses == [200] * 5 + [429]
        assert blocked.json()["error"]["code"] == "openlibrary_rate_limited"
        assert int(blocked.headers["Retry-After"]) >= 1
        assert len(openlibrary_stub.requests) == 5

    def test_repeated_search_is_served_from_cache(self, client, openlibrary_stub) -> None:
        openlibrary_stub.add("/search.json", TITLE_SEARCH)

        for _ in range(10):
            assert client.get("/api/books/search/openlibrary", params={"query": "fox"}).status_code == 200

        assert len(openlibrary_stub.requests) == 1


class TestAuthorInfo:
    """GET /api/authors/info."""

    def test_author_info(self, client, openlibrary_stub) -> None:
        openlibrary_stub.add("/search/authors.json", AUTHOR_SEARCH)
        openlibrary_stub.add("/authors/OL34184A/works.json", AUTHOR_WORKS)

        resp = client.get("/api/authors/info", params={"name": "Roald Dahl"})

        assert resp.status_code == 200
        author = resp.json()["author"]
        assert author["key"] == "OL34184A"
        assert author["birthDate"] == "13 September 1916"
        assert author["workCount"] == 642
        assert author["photoUrl"] == "https://covers.openlibrary.org/a/olid/OL34184A-L.jpg"
        assert [w["title"] for w in resp.json()["works"]] == ["Fantastic Mr Fox", "Matilda"]
        assert [w["firstPublishYear"] for w in resp.json()["works"]] == [1970, 1988]
        assert openlibrary_stub.requests[1].url.params["limit"] == "10"

    def test_author_info_accepts_author_name_param(self, client, openlibrary_stub) -> None:
        openlibrary_stub.add("/search/authors.json", AUTHOR_SEARCH)
        openlibrary_stub.add("/authors/OL34184A/works.json", AUTHOR_WORKS)

        resp = client.get("/api/authors/info", params={"authorName": "Roald Dahl"})

        assert resp.status_code == 200

    def test_author_info_requires_name(self, client) -> None:
        resp = client.get("/api/authors/info")

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "query_required"
