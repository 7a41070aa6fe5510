from burrow import RouteUnit, handles


class Home(RouteUnit):
    @handles()
    async def index(self, *params):
        visits = (self.session.get("visits") or 0) + 1
        self.session.set("visits", visits)
        return {"visits": visits, "notes": len(self.session.get("notes") or [])}
